"""Recording test doubles for injected docmd collaborators."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

from docmd.converter import ConversionOutcome, ConversionRequest, DocConverter
from docmd.metadata import MetadataIndex
from docmd.process import CommandResult

Scripted = Union[ConversionOutcome, Exception]


class RecordingConverter(DocConverter):
    """Converter double that records requests and writes a stub index on success."""

    def __init__(self, outcomes: Mapping[str, Scripted] | None = None) -> None:
        self.outcomes = dict(outcomes or {})
        self.requests: List[ConversionRequest] = []

    @property
    def names(self) -> List[str]:
        return [request.name for request in self.requests]

    def convert(self, request: ConversionRequest) -> ConversionOutcome:
        self.requests.append(request)
        scripted = self.outcomes.get(request.name, ConversionOutcome.success())
        if isinstance(scripted, Exception):
            raise scripted
        if scripted == ConversionOutcome.success():
            request.package_dir.mkdir(parents=True, exist_ok=True)
            (request.package_dir / "index.md").write_text(f"# {request.name}\n", encoding="utf-8")
        return scripted


class StaticMetadataProvider:
    """Metadata provider double returning a prepared index."""

    def __init__(self, index: MetadataIndex) -> None:
        self.index = index
        self.calls: List[Path] = []

    def load(self, project_root: Path) -> MetadataIndex:
        self.calls.append(project_root)
        return self.index


class ScriptedRunner:
    """Command runner double keyed by the leading arguments of each command."""

    def __init__(
        self,
        responses: Optional[Dict[tuple, CommandResult]] = None,
        *,
        side_effect: Callable[[Sequence[str], Path], None] | None = None,
    ) -> None:
        self.responses = dict(responses or {})
        self.side_effect = side_effect
        self.calls: List[tuple[List[str], Path]] = []

    def __call__(self, args, *, cwd: Path, env=None) -> CommandResult:  # type: ignore[no-untyped-def]
        argv = list(args)
        self.calls.append((argv, Path(cwd)))
        if self.side_effect is not None:
            self.side_effect(argv, Path(cwd))
        for prefix, result in self.responses.items():
            if tuple(argv[: len(prefix)]) == prefix:
                return result
        return CommandResult(args=tuple(argv), returncode=0)


__all__ = ["RecordingConverter", "ScriptedRunner", "StaticMetadataProvider"]
