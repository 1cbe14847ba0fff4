"""Tests for stencil.rendering — nested resolution, dependencies, cycles."""

import pytest

from stencil.errors import CompositionCycle, UnboundPlaceholder
from stencil.models import Rendered
from stencil.reference import Literal, Reference
from stencil.rendering import render_reference, render_sequence
from stencil.template import Template


class TestSubstitution:
    def test_nested_reference(self):
        parent = Reference(Template("mod @[m]@ { @[c]@ }"))
        child = Reference(Template("fn @[f]@(){}"))
        child.set("f", "go")
        parent.set_ref("c", child)
        parent.set("m", "pkg")
        assert parent.render() == "mod pkg { fn go(){} }"

    def test_every_occurrence_replaced(self):
        ref = Reference("@[x]@ + @[x]@ = 2 * @[x]@").set("x", "a")
        out = ref.render()
        assert out == "a + a = 2 * a"
        assert "@[" not in out

    def test_literal_values_are_not_rescanned(self):
        ref = Reference("<@[a]@>").set("a", "@[b]@")
        assert ref.render() == "<@[b]@>"

    def test_three_levels(self):
        leaf = Reference('println!("@[message]@");').set("message", "Nested template")
        mid = Reference("fn helper() {\n    @[body]@\n}").set_ref("body", leaf)
        root = Reference("mod test {\n    @[function]@\n}").set_ref("function", mid)
        out = root.render()
        assert "mod test {" in out
        assert "fn helper()" in out
        assert 'println!("Nested template");' in out

    def test_shared_child_in_two_slots(self):
        shared = Reference("<@[v]@>").set("v", "s")
        parent = Reference("@[a]@|@[b]@").set_ref("a", shared).set_ref("b", shared)
        assert parent.render() == "<s>|<s>"

    def test_child_reused_in_two_parents(self):
        shared = Reference("x")
        p1 = Reference("1@[c]@").set_ref("c", shared)
        p2 = Reference("2@[c]@").set_ref("c", shared)
        assert p1.render() == "1x"
        assert p2.render() == "2x"

    def test_render_is_idempotent(self):
        child = Reference("c").with_dependency("serde")
        parent = Reference("p@[c]@").set_ref("c", child).with_dependency("tokio")
        first = parent.resolve()
        second = parent.resolve()
        assert first == second
        assert parent.render() == first.text


class TestUnbound:
    def test_missing_binding_raises(self):
        ref = Reference(Template("value: @[x]@"))
        with pytest.raises(UnboundPlaceholder, match="Unbound placeholder: 'x'") as exc:
            ref.render()
        assert exc.value.name == "x"

    def test_never_defaults_to_empty(self):
        ref = Reference("@[a]@@[b]@").set("a", "1")
        with pytest.raises(UnboundPlaceholder) as exc:
            ref.render()
        assert exc.value.name == "b"

    def test_empty_string_binding_is_allowed(self):
        assert Reference("[@[a]@]").set("a", "").render() == "[]"

    def test_first_missing_in_placeholder_order(self):
        ref = Reference("@[z]@ @[y]@")
        with pytest.raises(UnboundPlaceholder) as exc:
            ref.render()
        assert exc.value.name == "z"

    def test_unbound_in_nested_names_child(self):
        child = Reference("@[inner]@", name="child")
        parent = Reference("@[c]@", name="parent").set_ref("c", child)
        with pytest.raises(UnboundPlaceholder, match="in child") as exc:
            parent.render()
        assert exc.value.name == "inner"
        assert exc.value.reference == "child"


class TestDependencies:
    def test_own_dependencies(self):
        ref = Reference("x").with_dependency("serde")
        assert ref.dependencies() == ("serde",)

    def test_nested_dependencies_merged(self):
        child = Reference("c").with_dependency("regex")
        parent = Reference("@[c]@").set_ref("c", child).with_dependency("serde")
        assert parent.dependencies() == ("serde", "regex")

    def test_duplicates_across_children_collapse(self):
        a = Reference("a").with_dependency("serde")
        b = Reference("b").with_dependency("serde")
        parent = Reference("@[a]@@[b]@").set_ref("a", a).set_ref("b", b)
        assert parent.dependencies() == ("serde",)

    def test_duplicate_declaration_on_same_reference(self):
        ref = Reference("x").with_dependency("tokio").with_dependency("tokio")
        assert ref.dependencies() == ("tokio",)

    def test_conflicting_versions_both_kept(self):
        a = Reference("a").with_dependency('serde = "1"')
        b = Reference("b").with_dependency('serde = "1.0.200"')
        parent = Reference("@[a]@@[b]@").set_ref("a", a).set_ref("b", b)
        assert set(parent.dependencies()) == {'serde = "1"', 'serde = "1.0.200"'}

    def test_transitive_dependencies(self):
        leaf = Reference("l").with_dependency("leaf-dep")
        mid = Reference("@[l]@").set_ref("l", leaf)
        root = Reference("@[m]@").set_ref("m", mid)
        assert root.dependencies() == ("leaf-dep",)

    def test_literal_bindings_contribute_nothing(self):
        ref = Reference("@[a]@").set("a", "serde")
        assert ref.dependencies() == ()


class TestCycles:
    def test_two_node_cycle(self):
        a = Reference("A(@[b]@)", name="a")
        b = Reference("B(@[a]@)", name="b")
        a.set_ref("b", b)
        b.set_ref("a", a)
        with pytest.raises(CompositionCycle, match="a -> b -> a") as exc:
            a.render()
        assert exc.value.path == (a, b, a)

    def test_self_reference(self):
        a = Reference("@[me]@", name="self")
        a.set_ref("me", a)
        with pytest.raises(CompositionCycle) as exc:
            a.render()
        assert exc.value.path == (a, a)

    def test_cycle_below_root_reports_only_cycle(self):
        b = Reference("@[c]@", name="b")
        c = Reference("@[b]@", name="c")
        b.set_ref("c", c)
        c.set_ref("b", b)
        root = Reference("@[x]@", name="root").set_ref("x", b)
        with pytest.raises(CompositionCycle) as exc:
            root.render()
        assert exc.value.path == (b, c, b)

    def test_structurally_equal_nodes_are_not_a_cycle(self):
        inner = Reference("leaf")
        outer = Reference("@[x]@").set_ref("x", inner)
        root = Reference("@[x]@").set_ref("x", outer)
        assert root.render() == "leaf"

    def test_diamond_is_not_a_cycle(self):
        shared = Reference("s").with_dependency("d")
        left = Reference("L@[s]@").set_ref("s", shared)
        right = Reference("R@[s]@").set_ref("s", shared)
        root = Reference("@[l]@ @[r]@").set_ref("l", left).set_ref("r", right)
        assert root.resolve() == Rendered(text="Ls Rs", dependencies=("d",))


class TestRenderFunctions:
    def test_render_reference(self):
        ref = Reference("hi @[n]@").set("n", "there").with_dependency("x")
        assert render_reference(ref) == Rendered("hi there", ("x",))

    def test_render_sequence_concatenates(self):
        a = Reference("A").with_dependency("serde")
        b = Reference("B").with_dependency("tokio")
        assert render_sequence([a, b]) == Rendered("AB", ("serde", "tokio"))

    def test_render_sequence_empty(self):
        assert render_sequence([]) == Rendered("", ())

    def test_literal_type(self):
        ref = Reference("@[a]@").set("a", "v")
        assert isinstance(ref.bindings["a"], Literal)


def _chain(depth, leaf="leaf"):
    """Build root -> ... -> leaf, each level declaring its own dependency."""
    refs = [Reference("@[c]@").with_dependency(f"dep{i}") for i in range(depth)]
    for parent, child in zip(refs, refs[1:]):
        parent.set_ref("c", child)
    refs[-1].set("c", leaf)
    return refs


class TestDeepNesting:
    def test_deep_chain_renders(self):
        refs = _chain(5000)
        assert refs[0].render() == "leaf"

    def test_deep_chain_dependencies_in_pre_order(self):
        refs = _chain(3000)
        deps = refs[0].dependencies()
        assert len(deps) == 3000
        assert deps[0] == "dep0"
        assert deps[-1] == "dep2999"

    def test_deep_chain_with_text_around_each_level(self):
        refs = [Reference("(@[c]@)") for _ in range(2000)]
        for parent, child in zip(refs, refs[1:]):
            parent.set_ref("c", child)
        refs[-1].set("c", "x")
        assert refs[0].render() == "(" * 2000 + "x" + ")" * 2000

    def test_deep_cycle_detected(self):
        refs = _chain(2000)
        refs[-1].set_ref("c", refs[500])
        with pytest.raises(CompositionCycle) as exc:
            refs[0].render()
        assert exc.value.path[0] is refs[500]
        assert exc.value.path[-1] is refs[500]
        assert len(exc.value.path) == 1501

    def test_deep_unbound_names_leaf(self):
        refs = _chain(2000)
        refs[-1].unset("c")
        refs[-1].name = "bottom"
        with pytest.raises(UnboundPlaceholder, match="in bottom"):
            refs[0].render()

    def test_rerender_after_fixing_deep_binding(self):
        refs = _chain(2000)
        refs[-1].unset("c")
        with pytest.raises(UnboundPlaceholder):
            refs[0].render()
        refs[-1].set("c", "fixed")
        assert refs[0].render() == "fixed"
