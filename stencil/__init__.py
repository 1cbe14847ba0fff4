"""Composable text templates with @[name]@ placeholders."""

from stencil.assembler import Assembler
from stencil.errors import (
    CompositionCycle,
    ConfigError,
    MalformedPlaceholder,
    ManifestError,
    StencilError,
    TemplateEncodingError,
    UnboundPlaceholder,
    UnknownPlaceholder,
)
from stencil.models import Rendered
from stencil.reference import Literal, Reference
from stencil.template import Template

__all__ = [
    "Assembler",
    "CompositionCycle",
    "ConfigError",
    "Literal",
    "MalformedPlaceholder",
    "ManifestError",
    "Reference",
    "Rendered",
    "StencilError",
    "Template",
    "TemplateEncodingError",
    "UnboundPlaceholder",
    "UnknownPlaceholder",
]
