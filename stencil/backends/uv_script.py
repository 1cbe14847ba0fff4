"""Run rendered Python through uv with PEP 723 inline dependencies."""

from __future__ import annotations

import json

from stencil.backends.base import ScriptBackend


class UvScriptBackend(ScriptBackend):
    suffix = ".py"
    install_hint = "pip install uv"

    def name(self) -> str:
        return "uv"

    def header(self, dependencies: list[str]) -> str:
        if not dependencies:
            return ""
        lines = ["# /// script", "# dependencies = ["]
        lines += [f"#   {json.dumps(d)}," for d in dependencies]
        lines += ["# ]", "# ///", ""]
        return "\n".join(lines)

    def command(self, script_path: str) -> list[str]:
        return [self.executable(), "run", "--script", script_path]
