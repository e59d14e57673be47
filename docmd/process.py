"""Thin wrapper around subprocess for external tool invocations."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional, Tuple

from .logging import get_logger
from .models import DocMdError

_LOGGER = get_logger("process")


class CommandNotFoundError(DocMdError):
    """Raised when an external executable cannot be located."""


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of one external command."""

    args: Tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


CommandRunner = Callable[..., CommandResult]


def run_command(
    args: Iterable[str],
    *,
    cwd: Path,
    env: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """Run ``args`` in ``cwd`` and capture its output without raising on failure."""
    argv = tuple(args)
    _LOGGER.debug("Running %s (cwd=%s)", " ".join(argv), cwd)
    try:
        completed = subprocess.run(
            list(argv),
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            check=False,
            text=True,
            errors="replace",
            capture_output=True,
        )
    except FileNotFoundError as exc:
        raise CommandNotFoundError(f"Unable to locate '{argv[0]}'. Is it installed and on PATH?") from exc
    return CommandResult(
        args=argv,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


__all__ = ["CommandNotFoundError", "CommandResult", "CommandRunner", "run_command"]
