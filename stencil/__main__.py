"""CLI entry point: python -m stencil render|run|placeholders|check|backends ..."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from stencil.errors import StencilError

logger = logging.getLogger(__name__)


def _parse_assignments(pairs: list[str]) -> list[tuple[str, str]]:
    out = []
    for pair in pairs or []:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            print(f"Error: expected NAME=VALUE, got {pair!r}", file=sys.stderr)
            sys.exit(2)
        out.append((name, value))
    return out


def _load_settings(args: argparse.Namespace):
    from stencil.config import load_settings

    try:
        return load_settings(args.config)
    except (StencilError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def _render_manifest(args: argparse.Namespace):
    from stencil.manifest import load_manifest

    try:
        assembler = load_manifest(args.manifest)
        for name, value in _parse_assignments(args.set):
            if assembler.set_global(name, value) == 0:
                print(f"Warning: no template declares {name!r}", file=sys.stderr)
        return assembler.render_all()
    except (StencilError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def cmd_render(args: argparse.Namespace) -> None:
    rendered = _render_manifest(args)

    if args.output:
        try:
            Path(args.output).write_text(rendered.text, encoding="utf-8")
        except OSError as exc:
            print(f"Error: cannot write {args.output}: {exc}", file=sys.stderr)
            sys.exit(1)
        logger.info("Wrote %d chars to %s", len(rendered.text), args.output)
    else:
        sys.stdout.write(rendered.text)

    if args.show_deps:
        for dep in rendered.dependencies:
            print(f"dependency: {dep}", file=sys.stderr)


def cmd_run(args: argparse.Namespace) -> None:
    from stencil.backends.registry import ensure_backend_registered, get_backend

    settings = _load_settings(args)
    backend_name = args.backend or settings.default_backend
    try:
        ensure_backend_registered(backend_name)
        backend = get_backend(backend_name, settings)
    except (ValueError, ImportError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    env = dict(_parse_assignments(args.env))
    rendered = _render_manifest(args)
    plan = backend.plan(rendered)
    plan.env.update(env)
    result = backend.execute(plan, timeout=args.timeout)

    if result.stdout:
        sys.stdout.write(result.stdout)
    if not result.ok:
        if result.stderr:
            sys.stderr.write(result.stderr)
        print(f"\nExecution failed: {result.error}", file=sys.stderr)
        sys.exit(result.returncode or 1)


def cmd_placeholders(args: argparse.Namespace) -> None:
    from stencil.loader import load_template

    try:
        template = load_template(args.template)
    except (StencilError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    for name in template.placeholders:
        count = template.occurrences(name)
        suffix = f" (x{count})" if count > 1 else ""
        print(f"{name}{suffix}")


def cmd_check(args: argparse.Namespace) -> None:
    from stencil.backends.registry import ensure_backend_registered, get_backend

    settings = _load_settings(args)
    backend_name = args.backend or settings.default_backend
    try:
        ensure_backend_registered(backend_name)
        backend = get_backend(backend_name, settings)
    except (ValueError, ImportError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print(f"Checking {backend_name}...")
    print()

    result = backend.preflight()
    for check in result.checks:
        tag = "PASS" if check.passed else "FAIL"
        print(f"  [{tag}] {check.name}: {check.message}")
        if not check.passed and check.fix_command:
            print(f"         Fix: {check.fix_command}")

    print()
    if result.ok:
        print(f"{backend_name}: all checks passed.")
    else:
        print(f"{backend_name}: {len(result.failed)} check(s) failed.", file=sys.stderr)
        sys.exit(1)


def cmd_backends(args: argparse.Namespace) -> None:
    from stencil.backends.registry import list_backends

    settings = _load_settings(args)
    for name in list_backends():
        marker = " (default)" if name == settings.default_backend else ""
        print(f"{name}{marker}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="stencil",
        description="Compose @[placeholder]@ templates and run the generated source",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--config", default=None,
                        help="Path to settings YAML (default: $STENCIL_CONFIG or ~/.stencil/config.yaml)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # -- render --
    p_render = subparsers.add_parser("render", help="Render a composition manifest")
    p_render.add_argument("manifest", help="Path to manifest YAML")
    p_render.add_argument("--set", action="append", default=[], metavar="NAME=VALUE",
                          help="Bind NAME in every template that declares it (repeatable)")
    p_render.add_argument("--output", "-o", default=None, help="Write to file instead of stdout")
    p_render.add_argument("--show-deps", action="store_true", default=False,
                          help="Print merged dependency declarations to stderr")
    p_render.set_defaults(func=cmd_render)

    # -- run --
    p_run = subparsers.add_parser("run", help="Render a manifest and execute the result")
    p_run.add_argument("manifest", help="Path to manifest YAML")
    p_run.add_argument("--set", action="append", default=[], metavar="NAME=VALUE",
                       help="Bind NAME in every template that declares it (repeatable)")
    p_run.add_argument("--backend", default=None,
                       help="Execution backend: rust-script, uv (default: from settings)")
    p_run.add_argument("--timeout", type=int, default=None,
                       help="Seconds before the script is killed (default: from settings)")
    p_run.add_argument("--env", action="append", default=[], metavar="NAME=VALUE",
                       help="Extra environment variable for the script (repeatable)")
    p_run.set_defaults(func=cmd_run)

    # -- placeholders --
    p_ph = subparsers.add_parser("placeholders", help="List placeholders declared by a template file")
    p_ph.add_argument("template", help="Path to template file")
    p_ph.set_defaults(func=cmd_placeholders)

    # -- check --
    p_check = subparsers.add_parser("check", help="Validate backend environment (preflight checks)")
    p_check.add_argument("--backend", default=None, help="Backend to check (default: from settings)")
    p_check.set_defaults(func=cmd_check)

    # -- backends --
    p_backends = subparsers.add_parser("backends", help="List known execution backends")
    p_backends.set_defaults(func=cmd_backends)

    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    args.func(args)


if __name__ == "__main__":
    main()
