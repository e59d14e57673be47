"""Rendering of rustdoc JSON into markdown via an external command."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List, Protocol, Sequence

from ..config import DEFAULT_RENDER_COMMAND
from ..logging import get_logger
from ..process import CommandRunner, run_command
from .base import ConversionOutcome, ConversionRequest


class JsonRenderer(Protocol):
    def render(self, json_path: Path, request: ConversionRequest) -> ConversionOutcome:
        ...


class CommandRenderer:
    """Runs a configurable command that writes ``<output>/<artifact>/`` from a JSON file.

    Placeholders ``{input}``, ``{output}``, ``{name}`` and ``{private}`` in the
    command template are substituted per request. The package directory is
    removed first so the previous run's files never survive.
    """

    def __init__(
        self,
        command: Sequence[str] = DEFAULT_RENDER_COMMAND,
        runner: CommandRunner | None = None,
    ) -> None:
        if not command:
            raise ValueError("Renderer command must not be empty")
        self.command = list(command)
        self._runner = runner or run_command
        self.logger = get_logger("renderer")

    def render(self, json_path: Path, request: ConversionRequest) -> ConversionOutcome:
        package_dir = request.package_dir
        if package_dir.exists():
            self.logger.debug("Removing previous output at %s", package_dir)
            shutil.rmtree(package_dir)

        request.context.output_dir.mkdir(parents=True, exist_ok=True)
        args = self._build_args(json_path, request)
        result = self._runner(args, cwd=request.context.project_root)
        if not result.ok:
            detail = result.stderr.strip() or f"exit code {result.returncode}"
            return ConversionOutcome.failed(f"Markdown conversion failed for '{request.name}': {detail}")

        if not (package_dir / "index.md").exists():
            return ConversionOutcome.failed(f"Markdown conversion produced no index at {package_dir / 'index.md'}")
        return ConversionOutcome.success()

    def _build_args(self, json_path: Path, request: ConversionRequest) -> List[str]:
        values = {
            "input": str(json_path),
            "output": str(request.context.output_dir),
            "name": request.artifact_name,
            "private": "--include-private" if request.context.include_private else "",
        }
        args = [part.format(**values) for part in self.command]
        return [arg for arg in args if arg]
