"""Logging for docmd runs.

Per-target progress lines (``✓``, ``⊘``, ``✗``) are logged with
``extra=PROGRESS`` and reach the console without a level prefix, so a run
reads as a checklist. Everything else is prefixed with ``[docmd] LEVEL``.
The optional log file records every line with a timestamp and logger name.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

_LOGGER_NAME = "docmd"
_CONSOLE_PREFIX = "[docmd]"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Marks a record as a per-target progress line.
PROGRESS = {"progress": True}


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the docmd hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class ConsoleFormatter(logging.Formatter):
    """Formats progress lines bare and prefixes all other records with their level.

    In verbose mode the component name (``metadata``, ``converter``, ...) is
    included so debug output can be traced back to its source.
    """

    def __init__(self, *, verbose: bool = False) -> None:
        super().__init__("%(message)s")
        self.verbose = verbose

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if getattr(record, "progress", False):
            return message
        if self.verbose:
            component = record.name[len(_LOGGER_NAME) + 1 :] or _LOGGER_NAME
            return f"{_CONSOLE_PREFIX} {record.levelname} {component}: {message}"
        return f"{_CONSOLE_PREFIX} {record.levelname} {message}"


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Install docmd's console handler (stderr by default) and optional file sink.

    stdout stays free for the run summary.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated CLI invocations in one process don't duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(stream or sys.stderr)
    console.setLevel(level)
    console.setFormatter(ConsoleFormatter(verbose=verbose))
    logger.addHandler(console)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)
        if not verbose:
            # the file keeps debug detail even when the console does not
            logger.setLevel(logging.DEBUG)

    return logger


__all__ = ["PROGRESS", "ConsoleFormatter", "configure_logging", "get_logger"]
