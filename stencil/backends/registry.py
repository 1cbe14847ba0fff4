"""Backend registry — lookup execution backends by name.

Built-in backends are imported on first use so that listing or checking one
backend never pulls in the others.
"""

from __future__ import annotations

import importlib
import logging
from typing import Optional

from stencil.backends.base import ExecutionBackend
from stencil.config import Settings

logger = logging.getLogger(__name__)

_BACKENDS: dict[str, type[ExecutionBackend]] = {}

# Maps backend name → (module_path, class_name) for lazy loading.
BACKEND_MODULES: dict[str, tuple[str, str]] = {
    "rust-script": ("stencil.backends.rust_script", "RustScriptBackend"),
    "uv": ("stencil.backends.uv_script", "UvScriptBackend"),
}


def register(name: str, cls: type[ExecutionBackend]) -> None:
    """Register a backend class under a name."""
    if not (isinstance(cls, type) and issubclass(cls, ExecutionBackend)):
        raise TypeError(f"Backend {name!r} must subclass ExecutionBackend, got {cls!r}")
    _BACKENDS[name] = cls


def get_backend(name: str, settings: Optional[Settings] = None) -> ExecutionBackend:
    """Instantiate a backend by name, importing a built-in one if needed."""
    if name not in _BACKENDS and name in BACKEND_MODULES:
        ensure_backend_registered(name)
    cls = _BACKENDS.get(name)
    if not cls:
        raise ValueError(
            f"Unknown backend: {name!r}. Available: {list_backends()}"
        )
    return cls(settings)


def list_backends() -> list[str]:
    """Built-in backend names followed by any registered at runtime."""
    return list(dict.fromkeys([*BACKEND_MODULES, *_BACKENDS]))


def ensure_backend_registered(name: str) -> None:
    """Import the backend module and register the class if not already present."""
    if name in _BACKENDS:
        return
    entry = BACKEND_MODULES.get(name)
    if not entry:
        raise ValueError(
            f"No known module for backend {name!r}. "
            f"Known backends: {list(BACKEND_MODULES.keys())}"
        )
    module_path, class_name = entry
    try:
        mod = importlib.import_module(module_path)
    except ImportError as exc:
        raise ImportError(f"Backend {name!r} could not be loaded from {module_path}: {exc}") from exc
    cls = getattr(mod, class_name, None)
    if cls is None:
        raise ImportError(f"Backend {name!r}: {module_path} has no class {class_name}")
    register(name, cls)
    logger.debug("Registered backend %s (%s.%s)", name, module_path, class_name)
