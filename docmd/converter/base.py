"""Contract for the per-package documentation converter."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from ..models import DocumentationTarget, WorkContext


class ConversionStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionRequest:
    """One package to convert into a markdown tree under ``context.output_dir``.

    When ``input_path`` is set the rustdoc JSON already exists and only the
    rendering step runs.
    """

    name: str
    version: Optional[str]
    artifact_name: str
    context: WorkContext
    input_path: Optional[Path] = None

    @classmethod
    def for_target(cls, target: DocumentationTarget, context: WorkContext) -> "ConversionRequest":
        return cls(
            name=target.name,
            version=target.version,
            artifact_name=target.artifact_name,
            context=context,
        )

    @property
    def spec(self) -> str:
        return f"{self.name}@{self.version}" if self.version else self.name

    @property
    def package_dir(self) -> Path:
        return self.context.output_dir / self.artifact_name


@dataclass(frozen=True)
class ConversionOutcome:
    """Ternary result reported by a converter."""

    status: ConversionStatus
    message: Optional[str] = None

    @classmethod
    def success(cls) -> "ConversionOutcome":
        return cls(status=ConversionStatus.SUCCESS)

    @classmethod
    def skipped(cls, reason: str) -> "ConversionOutcome":
        return cls(status=ConversionStatus.SKIPPED, message=reason)

    @classmethod
    def failed(cls, message: str) -> "ConversionOutcome":
        return cls(status=ConversionStatus.FAILED, message=message)


class DocConverter(ABC):
    """Turns one package's documentation into a navigable markdown tree."""

    @abstractmethod
    def convert(self, request: ConversionRequest) -> ConversionOutcome:
        """Produce ``<output>/<artifact>/index.md``, replacing any previous output."""
