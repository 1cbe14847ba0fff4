"""References — a Template bound to values, nested References and dependencies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

from stencil.errors import UnknownPlaceholder
from stencil.models import Rendered
from stencil.template import Template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Literal:
    """Text inserted verbatim in place of a placeholder."""

    text: str


Value = Union[Literal, "Reference"]


class Reference:
    """A renderable binding of a Template.

    Nested References are held by identity: ``set_ref`` stores the object the
    caller passed, so changes made to it before the parent renders are visible
    in the parent's output. Use :meth:`clone` to hand over a detached copy.
    """

    def __init__(
        self,
        template: Template | str,
        *,
        name: Optional[str] = None,
        dependencies: Iterable[str] = (),
    ) -> None:
        if isinstance(template, str):
            template = Template(template)
        self.template = template
        self.name = name
        self._bindings: dict[str, Value] = {}
        self._dependencies: list[str] = list(dependencies)

    @property
    def label(self) -> str:
        """Human-readable identity used in error messages."""
        if self.name:
            return self.name
        origin = self.template.source or "template"
        return f"{origin}@{id(self):x}"

    @property
    def placeholders(self) -> tuple[str, ...]:
        return self.template.placeholders

    @property
    def bindings(self) -> Mapping[str, Value]:
        return MappingProxyType(self._bindings)

    @property
    def declared_dependencies(self) -> tuple[str, ...]:
        """Dependencies declared on this Reference only, deduplicated."""
        return tuple(dict.fromkeys(self._dependencies))

    def _check_declared(self, name: str) -> None:
        if not self.template.declares(name):
            raise UnknownPlaceholder(name, self.template.placeholders)

    def set(self, name: str, value) -> Reference:
        """Bind *name* to literal text. Last write wins."""
        if isinstance(value, Reference):
            raise TypeError(f"Use set_ref() to bind a Reference to {name!r}")
        self._check_declared(name)
        self._bindings[name] = Literal(value if isinstance(value, str) else str(value))
        return self

    def set_ref(self, name: str, reference: Reference) -> Reference:
        """Bind *name* to a nested Reference, rendered when this one renders."""
        if not isinstance(reference, Reference):
            raise TypeError(f"Expected a Reference for {name!r}, got {type(reference).__name__}")
        self._check_declared(name)
        self._bindings[name] = reference
        logger.debug("Bound %s.%s -> %s", self.label, name, reference.label)
        return self

    def with_dependency(self, declaration: str) -> Reference:
        self._dependencies.append(declaration)
        return self

    def unset(self, name: str) -> Reference:
        self._check_declared(name)
        self._bindings.pop(name, None)
        return self

    def is_bound(self, name: str) -> bool:
        return name in self._bindings

    def binding(self, name: str) -> Optional[Value]:
        self._check_declared(name)
        return self._bindings.get(name)

    def unbound(self) -> list[str]:
        """Declared placeholders without a binding, in placeholder order."""
        return [n for n in self.template.placeholders if n not in self._bindings]

    def _copy_node(self) -> Reference:
        return Reference(self.template, name=self.name, dependencies=self._dependencies)

    def clone(self) -> Reference:
        """Deep copy with fresh identities; shared children stay shared."""
        copies = {id(self): self._copy_node()}
        pending = [self]
        while pending:
            original = pending.pop()
            copy = copies[id(original)]
            for key, value in original._bindings.items():
                if isinstance(value, Reference):
                    if id(value) not in copies:
                        copies[id(value)] = value._copy_node()
                        pending.append(value)
                    value = copies[id(value)]
                copy._bindings[key] = value
        return copies[id(self)]

    def resolve(self) -> Rendered:
        """Render text and collect the effective dependency set."""
        from stencil.rendering import render_reference

        return render_reference(self)

    def render(self) -> str:
        return self.resolve().text

    def dependencies(self) -> tuple[str, ...]:
        return self.resolve().dependencies

    def __repr__(self) -> str:
        return (
            f"Reference({self.label!r}, placeholders={list(self.placeholders)}, "
            f"bound={sorted(self._bindings)})"
        )
