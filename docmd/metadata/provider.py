"""Fetches `cargo metadata` for the project being documented."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from ..logging import get_logger
from ..models import DocMdError
from ..process import CommandRunner, run_command
from .index import MetadataIndex


class MetadataError(DocMdError):
    """Raised when cargo metadata cannot be obtained."""


class MetadataProvider:
    """Runs `cargo metadata` filtered to the host platform and indexes the result."""

    FORMAT_VERSION = "1"

    def __init__(
        self,
        runner: CommandRunner | None = None,
        *,
        executable: str = "cargo",
        rustc: str = "rustc",
    ) -> None:
        self._runner = runner or run_command
        self.executable = executable
        self.rustc = rustc
        self.logger = get_logger("metadata")

    def load(self, project_root: Path) -> MetadataIndex:
        """Fetch and index metadata for the project at ``project_root``."""
        host = self.host_triple(project_root)
        self.logger.debug("Fetching cargo metadata for host %s", host)
        result = self._runner(
            [
                self.executable,
                "metadata",
                f"--format-version={self.FORMAT_VERSION}",
                "--filter-platform",
                host,
            ],
            cwd=project_root,
        )
        if not result.ok:
            raise MetadataError(f"cargo metadata failed: {result.stderr.strip()}")
        index = MetadataIndex.from_json(result.stdout)
        self.logger.debug(
            "Indexed %d packages (%d workspace members)",
            len(index),
            len(index.workspace_member_ids),
        )
        return index

    def host_triple(self, project_root: Path) -> str:
        """Return the platform triple dependencies are filtered for."""
        configured = os.environ.get("CARGO_BUILD_TARGET")
        if configured:
            return configured
        result = self._runner([self.rustc, "-vV"], cwd=project_root)
        if not result.ok:
            raise MetadataError(f"Failed to run rustc: {result.stderr.strip()}")
        host = _parse_host(result.stdout)
        if host is None:
            raise MetadataError("Failed to parse host triple from rustc")
        return host


def _parse_host(output: str) -> Optional[str]:
    for line in output.splitlines():
        if line.startswith("host:"):
            parts = line.split()
            if len(parts) > 1:
                return parts[1]
    return None
