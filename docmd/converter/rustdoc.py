"""DocConverter backed by `cargo rustdoc --output-format=json`."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from ..logging import get_logger
from ..models import DocMdError
from ..process import CommandResult, CommandRunner, run_command
from .base import ConversionOutcome, ConversionRequest, DocConverter
from .renderer import CommandRenderer, JsonRenderer

NO_LIBRARY_MARKER = "no library targets found"


class ToolchainError(DocMdError):
    """Raised when the toolchain required for rustdoc JSON is unavailable."""


class RustdocConverter(DocConverter):
    """Builds rustdoc JSON for one package and renders it to markdown."""

    def __init__(
        self,
        renderer: JsonRenderer | None = None,
        runner: CommandRunner | None = None,
        *,
        executable: str = "cargo",
        toolchain: Optional[str] = "nightly",
    ) -> None:
        self._runner = runner or run_command
        self.renderer = renderer or CommandRenderer(runner=self._runner)
        self.executable = executable
        self.toolchain = toolchain
        self.logger = get_logger("converter")

    def check_toolchain(self, project_root: Path) -> None:
        """Fail fast when the configured toolchain cannot run cargo."""
        args = [self.executable]
        if self.toolchain:
            args.append(f"+{self.toolchain}")
        args.append("--version")
        result = self._runner(args, cwd=project_root)
        if not result.ok:
            toolchain = self.toolchain or "default"
            raise ToolchainError(
                f"The {toolchain} toolchain is not installed or not available.\n"
                "Rustdoc JSON output requires unstable rustdoc features.\n"
                f"Install with: rustup install {toolchain}"
            )
        self.logger.debug("Using %s", result.stdout.strip())

    def convert(self, request: ConversionRequest) -> ConversionOutcome:
        if request.input_path is not None:
            return self.renderer.render(request.input_path, request)

        result = self._runner(self._rustdoc_args(request), cwd=request.context.project_root)
        if not result.ok:
            if NO_LIBRARY_MARKER in result.stderr:
                return ConversionOutcome.skipped("no library target found (binary-only crate)")
            return ConversionOutcome.failed(self._failure_message(request, result))

        json_path = request.context.target_dir / "doc" / f"{request.artifact_name}.json"
        if not json_path.exists():
            return ConversionOutcome.failed(f"Generated JSON file not found at {json_path}")
        self.logger.debug("Rendering %s", json_path)
        return self.renderer.render(json_path, request)

    def _rustdoc_args(self, request: ConversionRequest) -> List[str]:
        args = [self.executable]
        if self.toolchain:
            args.append(f"+{self.toolchain}")
        args.extend(
            [
                "rustdoc",
                "-p",
                request.spec,
                "--lib",
                "--",
                "--output-format=json",
                "-Z",
                "unstable-options",
            ]
        )
        if request.context.include_private:
            args.append("--document-private-items")
        return args

    @staticmethod
    def _failure_message(request: ConversionRequest, result: CommandResult) -> str:
        error_lines = [
            line for line in result.stderr.splitlines() if "error" in line or "failed" in line
        ][:2]
        if error_lines:
            return (
                f"Failed to build '{request.name}':\n"
                + "\n".join(error_lines)
                + f"\n\nRun 'cargo build -p {request.spec}' for full details"
            )
        return (
            f"Failed to build '{request.name}' (exit code: {result.returncode})\n"
            f"Run 'cargo build -p {request.spec}' for details"
        )
