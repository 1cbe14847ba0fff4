"""rust-script backend — run rendered Rust source with cargo dependencies."""

from __future__ import annotations

from stencil.backends.base import ScriptBackend


def _cargo_line(declaration: str) -> str:
    # A bare crate name means "any version".
    if "=" not in declaration:
        return f'{declaration.strip()} = "*"'
    return declaration.strip()


class RustScriptBackend(ScriptBackend):
    """Prefix an embedded Cargo manifest and run the file with rust-script."""

    suffix = ".rs"
    install_hint = "cargo install rust-script"

    def name(self) -> str:
        return "rust-script"

    def header(self, dependencies: list[str]) -> str:
        if not dependencies:
            return ""
        lines = ["//! ```cargo", "//! [dependencies]"]
        lines += [f"//! {_cargo_line(d)}" for d in dependencies]
        lines += ["//! ```", ""]
        return "\n".join(lines)

    def command(self, script_path: str) -> list[str]:
        return [self.executable(), script_path]
