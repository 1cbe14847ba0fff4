"""Rendering engine — walks a composition tree and produces final text.

Nested References are rendered depth-first before their text is inserted.
Dependencies are gathered during the same walk: a Reference's own
declarations first, then those of its children in occurrence order, with
exact-string deduplication. Two specifiers for the same package
(``serde = "1"`` and ``serde = "1.0.200"``) are kept as distinct entries.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from stencil.errors import CompositionCycle, UnboundPlaceholder
from stencil.models import Rendered
from stencil.reference import Literal, Reference

logger = logging.getLogger(__name__)


class _Frame:
    """A Reference being rendered, with its progress through the segments."""

    __slots__ = ("ref", "bindings", "segments", "index", "parts")

    def __init__(self, ref: Reference) -> None:
        self.ref = ref
        self.bindings = ref.bindings
        self.segments = ref.template.segments
        self.index = 0
        self.parts: list[str] = []

    def advance(self) -> Optional[Reference]:
        """Emit text up to the next nested Reference and return it, or None when done."""
        while self.index < len(self.segments):
            segment = self.segments[self.index]
            self.index += 1
            self.parts.append(segment.text)
            if segment.name is None:
                continue
            value = self.bindings[segment.name]
            if isinstance(value, Literal):
                self.parts.append(value.text)
            else:
                return value
        return None


class _RenderPass:
    """State of one render call: active path, finished nodes, dependencies.

    The walk keeps its own stack of frames, so nesting depth is not bounded
    by the interpreter's recursion limit.
    """

    def __init__(self) -> None:
        self._stack: list[_Frame] = []
        self._active: set[int] = set()
        self._finished: dict[int, str] = {}
        self._dependencies: dict[str, None] = {}

    @property
    def dependencies(self) -> tuple[str, ...]:
        return tuple(self._dependencies)

    def _enter(self, ref: Reference) -> Optional[str]:
        """Push a frame for *ref*, or return its text if already rendered."""
        key = id(ref)
        if key in self._active:
            path = [frame.ref for frame in self._stack]
            start = next(i for i, node in enumerate(path) if node is ref)
            raise CompositionCycle(path[start:] + [ref])
        # Shared children render once per pass.
        if key in self._finished:
            return self._finished[key]

        missing = ref.unbound()
        if missing:
            raise UnboundPlaceholder(missing[0], ref.label)

        for dep in ref.declared_dependencies:
            self._dependencies.setdefault(dep)
        self._stack.append(_Frame(ref))
        self._active.add(key)
        return None

    def visit(self, root: Reference) -> str:
        text = self._enter(root)
        if text is not None:
            return text

        try:
            while True:
                frame = self._stack[-1]
                child = frame.advance()
                if child is not None:
                    text = self._enter(child)
                    if text is not None:
                        frame.parts.append(text)
                    continue

                self._stack.pop()
                self._active.discard(id(frame.ref))
                text = "".join(frame.parts)
                self._finished[id(frame.ref)] = text
                if not self._stack:
                    return text
                self._stack[-1].parts.append(text)
        finally:
            self._stack.clear()
            self._active.clear()


def render_reference(root: Reference) -> Rendered:
    """Render *root* and every Reference nested under it."""
    state = _RenderPass()
    text = state.visit(root)
    logger.debug(
        "Rendered %s: %d chars, %d dependencies",
        root.label, len(text), len(state.dependencies),
    )
    return Rendered(text=text, dependencies=state.dependencies)


def render_sequence(references: Iterable[Reference]) -> Rendered:
    """Render References in order and concatenate them with no separator.

    Stops at the first failing item; nothing is returned for the others.
    """
    state = _RenderPass()
    parts = [state.visit(ref) for ref in references]
    text = "".join(parts)
    logger.debug(
        "Rendered %d reference(s): %d chars, %d dependencies",
        len(parts), len(text), len(state.dependencies),
    )
    return Rendered(text=text, dependencies=state.dependencies)
