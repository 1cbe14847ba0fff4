"""Data models shared by the renderer and the execution backends."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Rendered:
    """Final text of a composition plus its merged dependency declarations."""

    text: str
    dependencies: tuple[str, ...] = ()


@dataclass
class ExecutionPlan:
    """Generated script, ready to hand to a backend."""

    backend: str  # "rust-script", "uv"
    script: str  # Full file contents, dependency header included
    dependencies: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)  # Added to the inherited environment


@dataclass
class ExecutionResult:
    """Outcome of running a plan."""

    backend: str
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0


@dataclass
class PreflightCheck:
    """Result of a single preflight validation step."""

    name: str                       # e.g. "executable"
    passed: bool
    message: str                    # Human-readable status
    fix_command: str | None = None  # Shell command that fixes the problem


@dataclass
class PreflightResult:
    """Aggregated result of all preflight checks for a backend."""

    backend: str
    checks: list[PreflightCheck] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(c.passed for c in self.checks)

    @property
    def failed(self) -> list[PreflightCheck]:
        return [c for c in self.checks if not c.passed]
