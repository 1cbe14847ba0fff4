"""Read template files from disk."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from stencil.errors import TemplateEncodingError
from stencil.reference import Reference
from stencil.template import Template


def load_template(path: str | Path) -> Template:
    """Read a UTF-8 template file and parse its @[name]@ placeholders.

    The file path is kept as the template's ``source`` so parse and render
    errors point back at it.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise TemplateEncodingError(str(path), exc.reason) from exc
    return Template(content, source=str(path))


def load_reference(path: str | Path, name: Optional[str] = None) -> Reference:
    """Same as load_template but wraps the result in an unbound Reference."""
    return Reference(load_template(path), name=name)
