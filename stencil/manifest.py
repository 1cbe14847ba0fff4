"""Composition manifests — YAML documents describing a tree of References.

A node is a mapping::

    template: "fn @[name]@() { @[body]@ }"   # inline body, or
    file: templates/function.rs.tpl          # path relative to the manifest
    name: main                               # optional label for errors
    dependencies: ['serde = "1"']
    values:
      name: run                              # scalar -> literal text
      body:                                  # mapping -> nested node
        template: 'println!("@[msg]@");'
        values: {msg: hi}

The document root is either a single node or ``{templates: [node, ...]}``,
which renders the nodes in order.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from stencil.assembler import Assembler
from stencil.errors import ManifestError
from stencil.loader import load_template
from stencil.reference import Reference
from stencil.template import Template

logger = logging.getLogger(__name__)

_NODE_KEYS = frozenset({"template", "file", "name", "dependencies", "values"})
_SCALARS = (str, int, float, bool)


def load_manifest(path: str | Path) -> Assembler:
    """Load a manifest file. Relative ``file`` entries resolve against its directory."""
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = _safe_load(f, path.name)
    return build_assembler(raw, path.parent, origin=path.name)


def parse_manifest(text: str, base_dir: str | Path = ".") -> Assembler:
    return build_assembler(_safe_load(text, "manifest"), Path(base_dir))


def _safe_load(stream, origin: str):
    try:
        return yaml.safe_load(stream)
    except yaml.YAMLError as exc:
        raise ManifestError(f"{origin}: invalid YAML: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ManifestError(f"{origin}: not UTF-8 ({exc.reason})") from exc


def build_assembler(raw, base_dir: str | Path = ".", origin: str = "manifest") -> Assembler:
    if not isinstance(raw, dict):
        raise ManifestError(f"{origin}: manifest must be a mapping, got {type(raw).__name__}")

    assembler = Assembler()
    if "templates" in raw:
        extra = set(raw) - {"templates"}
        if extra:
            raise ManifestError(
                f"{origin}: unexpected keys next to 'templates': {sorted(extra)}"
            )
        nodes = raw["templates"]
        if not isinstance(nodes, list) or not nodes:
            raise ManifestError(f"{origin}: 'templates' must be a non-empty list")
        for i, node in enumerate(nodes):
            assembler.add_template(build_reference(node, base_dir, f"{origin}:templates[{i}]"))
    else:
        assembler.add_template(build_reference(raw, base_dir, origin))

    logger.debug("Loaded manifest %s with %d template(s)", origin, len(assembler))
    return assembler


def build_reference(
    node,
    base_dir: str | Path = ".",
    where: str = "manifest",
    _ancestors: frozenset[int] = frozenset(),
) -> Reference:
    """Build a Reference (and its nested References) from one manifest node."""
    if not isinstance(node, dict):
        raise ManifestError(f"{where}: node must be a mapping, got {type(node).__name__}")
    # YAML anchors can make a node contain itself.
    if id(node) in _ancestors:
        raise ManifestError(f"{where}: recursive alias")

    unknown = set(node) - _NODE_KEYS
    if unknown:
        raise ManifestError(
            f"{where}: unknown keys {sorted(unknown)}. Allowed: {sorted(_NODE_KEYS)}"
        )
    if ("template" in node) == ("file" in node):
        raise ManifestError(f"{where}: exactly one of 'template' or 'file' is required")

    if "template" in node:
        body = node["template"]
        if not isinstance(body, str):
            raise ManifestError(f"{where}: 'template' must be a string")
        template = Template(body, source=where)
    else:
        file = node["file"]
        if not isinstance(file, str):
            raise ManifestError(f"{where}: 'file' must be a string")
        template = load_template(Path(base_dir) / file)

    name = node.get("name")
    if name is not None and not isinstance(name, str):
        raise ManifestError(f"{where}: 'name' must be a string")
    ref = Reference(template, name=name)

    deps = node.get("dependencies") or []
    if not isinstance(deps, list) or not all(isinstance(d, str) for d in deps):
        raise ManifestError(f"{where}: 'dependencies' must be a list of strings")
    for dep in deps:
        ref.with_dependency(dep)

    values = node.get("values") or {}
    if not isinstance(values, dict):
        raise ManifestError(f"{where}: 'values' must be a mapping")
    for key, value in values.items():
        if isinstance(value, dict):
            child = build_reference(
                value, base_dir, f"{where}.values.{key}", _ancestors | {id(node)}
            )
            ref.set_ref(key, child)
        elif isinstance(value, _SCALARS):
            ref.set(key, value)
        else:
            raise ManifestError(
                f"{where}: value for {key!r} must be a scalar or a template mapping, "
                f"got {type(value).__name__}"
            )
    return ref
