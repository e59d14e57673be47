"""Output directory validation, legacy layout migration and creation."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Callable, List, Sequence

from .config import DEFAULT_LEGACY_DIRS
from .logging import get_logger
from .models import DocMdError


class OutputPathError(DocMdError):
    """Raised when the output root cannot be used as a directory."""


class OutputLifecycle:
    """Owns the output root for the duration of a run.

    Per-package directories below the root belong to the converter, which
    replaces them wholesale on every conversion.
    """

    def __init__(
        self,
        output_dir: Path,
        legacy_dirs: Sequence[str] = DEFAULT_LEGACY_DIRS,
        *,
        remover: Callable[[Path], None] = shutil.rmtree,
    ) -> None:
        self.output_dir = output_dir
        self.legacy_dirs = list(legacy_dirs)
        self._remover = remover
        self.logger = get_logger("output")

    def validate(self) -> None:
        """Reject an output path that exists but is not a directory."""
        if self.output_dir.exists() and not self.output_dir.is_dir():
            raise OutputPathError(
                f"Output path exists but is a file, not a directory: {self.output_dir}\n"
                "Please specify a directory path or remove the file."
            )

    def migrate_legacy_layout(self) -> List[Path]:
        """Remove directories left by the old nested layout; returns the paths removed."""
        removed: List[Path] = []
        for name in self.legacy_dirs:
            legacy = self.output_dir / name
            if not legacy.is_dir():
                continue
            self.logger.warning("Cleaning up old directory structure (%s)", legacy)
            try:
                self._remover(legacy)
            except OSError as exc:
                self.logger.warning(
                    "Could not remove old %s directory: %s. You may need to manually delete: %s",
                    name,
                    exc,
                    legacy,
                )
                continue
            self.logger.info("Migrated to new flat structure")
            removed.append(legacy)
        return removed

    def ensure_root(self) -> Path:
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputPathError(f"Failed to create output directory: {self.output_dir}: {exc}") from exc
        return self.output_dir


__all__ = ["OutputLifecycle", "OutputPathError"]
