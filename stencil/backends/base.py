"""Abstract base classes for execution backends."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from stencil.config import Settings
from stencil.models import (
    ExecutionPlan,
    ExecutionResult,
    PreflightCheck,
    PreflightResult,
    Rendered,
)

logger = logging.getLogger(__name__)


class ExecutionBackend(ABC):
    """Base class for backends that run rendered source.

    Each backend implements: plan -> execute.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

    @abstractmethod
    def name(self) -> str:
        """Backend identifier: 'rust-script', 'uv'."""
        ...

    @abstractmethod
    def plan(self, rendered: Rendered) -> ExecutionPlan:
        """Build the script file contents from rendered text and dependencies.

        Does NOT run anything. Pure function.
        """
        ...

    @abstractmethod
    def execute(self, plan: ExecutionPlan, timeout: Optional[int] = None) -> ExecutionResult:
        """Run the plan. Failures are reported in the result, not raised."""
        ...

    def preflight(self) -> PreflightResult:
        """Validate environment before execute. Override per backend."""
        return PreflightResult(backend=self.name())


class ScriptBackend(ExecutionBackend):
    """Backend that writes the plan to a temp file and runs one command on it."""

    suffix = ".txt"
    install_hint: Optional[str] = None

    def executable(self) -> str:
        return self.settings.executable_for(self.name())

    @abstractmethod
    def header(self, dependencies: list[str]) -> str:
        """Dependency block prepended to the rendered text."""
        ...

    @abstractmethod
    def command(self, script_path: str) -> list[str]:
        ...

    def plan(self, rendered: Rendered) -> ExecutionPlan:
        deps = list(rendered.dependencies)
        return ExecutionPlan(
            backend=self.name(),
            script=self.header(deps) + rendered.text,
            dependencies=deps,
        )

    def execute(self, plan: ExecutionPlan, timeout: Optional[int] = None) -> ExecutionResult:
        exe = self.executable()
        if shutil.which(exe) is None:
            msg = f"{exe} not found"
            if self.install_hint:
                msg += f". Install with: {self.install_hint}"
            return ExecutionResult(backend=self.name(), error=msg)

        timeout = timeout or self.settings.timeout

        # Rendered literals may hold secrets
        fd, script_path = tempfile.mkstemp(suffix=self.suffix, prefix="stencil_")
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(plan.script)

        try:
            logger.info(
                "Running %s via %s (%d dependencies)",
                script_path, exe, len(plan.dependencies),
            )
            merged_env = {**os.environ, **plan.env}
            try:
                result = subprocess.run(
                    self.command(script_path),
                    env=merged_env,
                    capture_output=True,
                    text=True,
                    timeout=timeout,
                )
            except subprocess.TimeoutExpired:
                logger.error("%s timed out after %ds", exe, timeout)
                return ExecutionResult(
                    backend=self.name(),
                    error=f"{exe} timed out after {timeout}s",
                )

            if result.returncode != 0:
                logger.error("%s failed: %s", exe, result.stderr)
                return ExecutionResult(
                    backend=self.name(),
                    returncode=result.returncode,
                    stdout=result.stdout,
                    stderr=result.stderr,
                    error=f"{exe} exited with status {result.returncode}: {result.stderr}",
                )

            return ExecutionResult(
                backend=self.name(),
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        finally:
            Path(script_path).unlink(missing_ok=True)

    def preflight(self) -> PreflightResult:
        result = PreflightResult(backend=self.name())
        exe = self.executable()
        found = shutil.which(exe)
        if found:
            result.checks.append(
                PreflightCheck(name="executable", passed=True, message=f"{exe} found at {found}")
            )
        else:
            result.checks.append(
                PreflightCheck(
                    name="executable",
                    passed=False,
                    message=f"{exe} not found on PATH",
                    fix_command=self.install_hint,
                )
            )
        return result
