"""Exception types raised by template parsing, binding and rendering."""

from __future__ import annotations

from typing import Optional, Sequence


class StencilError(Exception):
    """Base class for every error raised by stencil."""


class MalformedPlaceholder(StencilError):
    """A placeholder marker is unterminated, empty or not an identifier."""

    def __init__(
        self,
        message: str,
        position: int,
        line: int,
        column: int,
        source: Optional[str] = None,
    ) -> None:
        self.message = message
        self.position = position
        self.line = line
        self.column = column
        self.source = source
        where = f"{source}:" if source else ""
        super().__init__(f"{where}{line}:{column}: {message} (offset {position})")


class UnknownPlaceholder(StencilError):
    """Binding a name the template does not declare."""

    def __init__(self, name: str, available: Sequence[str] = ()) -> None:
        self.name = name
        self.available = tuple(available)
        super().__init__(
            f"Unknown placeholder: {name!r}. Available: {list(self.available)}"
        )


class UnboundPlaceholder(StencilError):
    """A declared placeholder has no binding at render time."""

    def __init__(self, name: str, reference: Optional[str] = None) -> None:
        self.name = name
        self.reference = reference
        msg = f"Unbound placeholder: {name!r}"
        if reference:
            msg += f" in {reference}"
        super().__init__(msg)


class CompositionCycle(StencilError):
    """A Reference contains itself, directly or through nested References."""

    def __init__(self, path: Sequence) -> None:
        self.path = tuple(path)
        labels = " -> ".join(getattr(ref, "label", repr(ref)) for ref in self.path)
        super().__init__(f"Composition cycle: {labels}")


class ManifestError(StencilError):
    """A composition manifest is structurally invalid."""


class ConfigError(StencilError, ValueError):
    """The settings file or environment holds invalid values."""


class TemplateEncodingError(StencilError):
    """A template file is not valid UTF-8."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"{path}: not a UTF-8 template file ({reason})")
