"""Render several top-level References into a single output."""

from __future__ import annotations

import logging
from typing import Iterator

from stencil.models import Rendered
from stencil.reference import Reference
from stencil.rendering import render_sequence

logger = logging.getLogger(__name__)


class Assembler:
    """Ordered sequence of References, rendered in insertion order.

    No separator is added between items; templates carry their own
    newlines.
    """

    def __init__(self) -> None:
        self.items: list[Reference] = []

    def add_template(self, reference: Reference) -> Assembler:
        if not isinstance(reference, Reference):
            raise TypeError(f"Expected a Reference, got {type(reference).__name__}")
        self.items.append(reference)
        return self

    def set_global(self, name: str, value) -> int:
        """Set *name* on every item whose template declares it.

        Returns the number of items updated.
        """
        count = 0
        for ref in self.items:
            if ref.template.declares(name):
                ref.set(name, value)
                count += 1
        logger.debug("set_global(%s) updated %d item(s)", name, count)
        return count

    def set_ref_global(self, name: str, reference: Reference) -> int:
        """Bind a separate clone of *reference* into every item declaring *name*."""
        count = 0
        for ref in self.items:
            if ref.template.declares(name):
                ref.set_ref(name, reference.clone())
                count += 1
        logger.debug("set_ref_global(%s) updated %d item(s)", name, count)
        return count

    def render_all(self) -> Rendered:
        return render_sequence(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Reference]:
        return iter(self.items)
