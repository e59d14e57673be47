"""CLI entrypoint for docmd."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .converter import CommandRenderer, RustdocConverter
from .logging import configure_logging
from .metadata import MetadataProvider
from .models import DocMdError, WorkContext
from .orchestrator import Orchestrator, RunMode, RunRequest
from .output import OutputLifecycle

_CARGO_SUBCOMMAND = "doc-md"

_DESCRIPTION = """\
Generate markdown documentation for Rust crates and their dependencies.

Default behavior: documents the current crate and all of its transitive
dependencies, then writes a master index linking every documented crate.

  docmd                      # current crate + all transitive dependencies
  docmd --workspace          # all workspace members + their dependencies
  docmd --no-deps            # current crate only
  docmd --deps-only          # dependencies of the current crate only
  docmd -p tokio -p serde    # specific packages + their dependencies
  docmd --json file.json     # convert an existing rustdoc JSON file
"""


def _add_verbose_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docmd",
        description=_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "-p",
        "--package",
        dest="packages",
        action="append",
        default=[],
        metavar="SPEC",
        help="Package to document with its dependencies (repeatable, accepts name@version).",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output directory (defaults to target/doc-md or the value in .docmd.yml).",
    )
    parser.add_argument(
        "--include-private",
        action="store_true",
        help="Include private items in documentation.",
    )
    parser.add_argument(
        "--json",
        dest="json_path",
        default=None,
        metavar="FILE",
        help="Convert an existing rustdoc JSON file.",
    )
    parser.add_argument(
        "--workspace",
        action="store_true",
        help="Document all workspace members.",
    )
    parser.add_argument(
        "--no-deps",
        action="store_true",
        help="Don't document dependencies.",
    )
    parser.add_argument(
        "--deps-only",
        action="store_true",
        help="Document the current crate's dependencies but not the crate itself.",
    )
    parser.add_argument(
        "--project-dir",
        default=".",
        help="Cargo project to document (defaults to current directory).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a .docmd.yml file (defaults to the one in the project directory).",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write logs to this file.",
    )
    return parser


_CONFLICTS = (
    ("json_path", "packages", "--json", "--package"),
    ("json_path", "workspace", "--json", "--workspace"),
    ("json_path", "no_deps", "--json", "--no-deps"),
    ("json_path", "deps_only", "--json", "--deps-only"),
    ("workspace", "packages", "--workspace", "--package"),
    ("no_deps", "deps_only", "--no-deps", "--deps-only"),
    ("deps_only", "workspace", "--deps-only", "--workspace"),
    ("deps_only", "packages", "--deps-only", "--package"),
)


def _resolve_request(parser: argparse.ArgumentParser, args: argparse.Namespace) -> RunRequest:
    """Validate flag combinations and translate them into a run request."""
    for first, second, first_flag, second_flag in _CONFLICTS:
        if getattr(args, first) and getattr(args, second):
            parser.error(f"argument {first_flag} cannot be used with {second_flag}")

    include_dependencies = not args.no_deps
    if args.json_path:
        return RunRequest(mode=RunMode.JSON, json_path=Path(args.json_path))
    if args.workspace:
        return RunRequest(mode=RunMode.WORKSPACE, include_dependencies=include_dependencies)
    if args.packages:
        return RunRequest(
            mode=RunMode.PACKAGES,
            packages=tuple(args.packages),
            include_dependencies=include_dependencies,
        )
    if args.deps_only:
        return RunRequest(mode=RunMode.DEPENDENCIES)
    return RunRequest(mode=RunMode.CURRENT, include_dependencies=include_dependencies)


def _strip_cargo_subcommand(argv: list[str]) -> list[str]:
    # `cargo doc-md ...` invokes the binary as `cargo-doc-md doc-md ...`
    if argv and argv[0] == _CARGO_SUBCOMMAND:
        return argv[1:]
    return argv


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docmd."""
    parser = _build_parser()
    raw_args = list(sys.argv[1:] if argv is None else argv)
    args = parser.parse_args(_strip_cargo_subcommand(raw_args))
    request = _resolve_request(parser, args)

    configure_logging(
        verbose=bool(args.verbose),
        log_file=Path(args.log_file) if args.log_file else None,
    )

    project_root = Path(args.project_dir).expanduser().resolve()
    try:
        config = load_config(Path(args.config) if args.config else project_root)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    output_dir = config.resolve_output(Path(args.output) if args.output else None)
    context = WorkContext(
        project_root=project_root,
        output_dir=output_dir,
        include_private=bool(args.include_private or config.include_private),
    )
    converter = RustdocConverter(
        renderer=CommandRenderer(config.renderer.command),
        executable=config.cargo.executable,
        toolchain=config.cargo.toolchain,
    )
    orchestrator = Orchestrator(
        context,
        converter,
        metadata_provider=MetadataProvider(executable=config.cargo.executable),
        lifecycle=OutputLifecycle(output_dir, config.legacy_dirs),
    )

    try:
        if request.mode is not RunMode.JSON:
            converter.check_toolchain(project_root)
        report = orchestrator.run(request)
    except DocMdError as exc:
        parser.exit(1, f"docmd failed: {exc}\n")

    print(report.render_summary())


if __name__ == "__main__":
    main(sys.argv[1:])
