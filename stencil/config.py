"""Settings dataclass and YAML/env loader."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

from stencil.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLES = {
    "rust-script": "rust-script",
    "uv": "uv",
}


@dataclass
class Settings:
    default_backend: str = "rust-script"
    timeout: int = 120  # seconds per script run
    executables: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_EXECUTABLES))

    def executable_for(self, backend: str) -> str:
        return self.executables.get(backend, backend)


_KEYS = frozenset(f.name for f in fields(Settings))


def _config_dir() -> Path:
    """Return the config directory, respecting STENCIL_HOME env var."""
    env = os.environ.get("STENCIL_HOME")
    if env:
        return Path(env)
    return Path.home() / ".stencil"


def default_config_path() -> Optional[Path]:
    """$STENCIL_CONFIG if set, else ~/.stencil/config.yaml when it exists."""
    env = os.environ.get("STENCIL_CONFIG")
    if env:
        return Path(env)
    path = _config_dir() / "config.yaml"
    return path if path.exists() else None


def load_settings(path: str | Path | None = None) -> Settings:
    """Build settings: defaults <- YAML file <- environment.

    Unknown keys cause a ``ConfigError`` so typos are caught early.
    """
    settings = Settings()

    config_path = Path(path) if path else default_config_path()
    if config_path is not None:
        _apply_file(settings, config_path)

    backend = os.environ.get("STENCIL_BACKEND")
    if backend:
        settings.default_backend = backend
    timeout = os.environ.get("STENCIL_TIMEOUT")
    if timeout:
        try:
            settings.timeout = int(timeout)
        except ValueError:
            raise ConfigError(f"STENCIL_TIMEOUT must be an integer, got {timeout!r}") from None

    _validate(settings)
    return settings


def _apply_file(settings: Settings, path: Path) -> None:
    logger.debug("Loading settings from %s", path)
    with open(path, encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid settings YAML in {path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise ConfigError(f"Settings file {path} is not UTF-8 ({exc.reason})") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Settings YAML must be a mapping, got {type(raw).__name__}")

    unknown = set(raw) - _KEYS
    if unknown:
        raise ConfigError(
            f"Unknown keys in settings: {sorted(unknown)}. Allowed: {sorted(_KEYS)}"
        )

    if "default_backend" in raw:
        settings.default_backend = raw["default_backend"]
    if "timeout" in raw:
        settings.timeout = raw["timeout"]
    if "executables" in raw:
        executables = raw["executables"] or {}
        if not isinstance(executables, dict):
            raise ConfigError(
                f"'executables' must be a mapping, got {type(executables).__name__}"
            )
        settings.executables.update(executables)


def _validate(settings: Settings) -> None:
    if not isinstance(settings.default_backend, str) or not settings.default_backend:
        raise ConfigError("'default_backend' must be a non-empty string")
    if isinstance(settings.timeout, bool) or not isinstance(settings.timeout, int) or settings.timeout <= 0:
        raise ConfigError(f"'timeout' must be a positive integer, got {settings.timeout!r}")
    for name, exe in settings.executables.items():
        if not isinstance(exe, str) or not exe:
            raise ConfigError(f"Executable for {name!r} must be a non-empty string")
