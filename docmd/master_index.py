"""Master index linking every documented crate."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .models import DocumentationTarget, OutcomeRecord, TargetKind, normalize_name

INDEX_FILENAME = "index.md"


@dataclass(frozen=True)
class IndexEntry:
    """A documented crate and the output directory holding its markdown."""

    name: str
    artifact: str

    @classmethod
    def for_target(cls, target: DocumentationTarget) -> "IndexEntry":
        return cls(name=target.name, artifact=target.artifact_name)

    @classmethod
    def for_name(cls, name: str) -> "IndexEntry":
        return cls(name=name, artifact=normalize_name(name))


@dataclass
class IndexSections:
    """Documented crates grouped by index section."""

    current: Optional[IndexEntry] = None
    workspace_members: List[IndexEntry] = field(default_factory=list)
    dependencies: List[IndexEntry] = field(default_factory=list)

    @classmethod
    def from_outcomes(
        cls,
        outcomes: Iterable[OutcomeRecord],
        *,
        explicit_as_members: bool = False,
    ) -> "IndexSections":
        """Group documented outcomes; skipped and failed ones are left out.

        Explicitly requested packages are listed with workspace members when
        their dependencies were documented too, otherwise with dependencies.
        """
        sections = cls()
        for outcome in outcomes:
            if not outcome.documented:
                continue
            entry = IndexEntry.for_target(outcome.target)
            kind = outcome.target.kind
            if kind is TargetKind.CURRENT:
                sections.current = entry
            elif kind is TargetKind.WORKSPACE_MEMBER:
                sections.workspace_members.append(entry)
            elif kind is TargetKind.EXPLICIT and explicit_as_members:
                sections.workspace_members.append(entry)
            else:
                sections.dependencies.append(entry)
        return sections


class MasterIndexGenerator:
    """Renders and writes ``index.md`` at the output root."""

    TITLE = "# Documentation Index"
    BLURB = "Generated markdown documentation for this project."
    FOOTER = "Generated with docmd"

    def render(self, sections: IndexSections) -> str:
        lines = [self.TITLE, "", self.BLURB, ""]

        if sections.current:
            lines.extend(["## Current Crate", "", self.link(sections.current), ""])

        if sections.workspace_members:
            lines.append(f"## Workspace Members ({len(sections.workspace_members)})")
            lines.append("")
            lines.extend(self._links(sections.workspace_members))
            lines.append("")

        if sections.dependencies:
            lines.append(f"## Dependencies ({len(sections.dependencies)})")
            lines.append("")
            lines.extend(self._links(sections.dependencies))
            lines.append("")

        lines.extend(["---", "", self.FOOTER])
        return "\n".join(lines) + "\n"

    def write(self, output_dir: Path, sections: IndexSections) -> Path:
        index_path = output_dir / INDEX_FILENAME
        index_path.write_text(self.render(sections), encoding="utf-8")
        return index_path

    @staticmethod
    def link(entry: IndexEntry) -> str:
        return f"- [`{entry.name}`]({entry.artifact}/{INDEX_FILENAME})"

    def _links(self, entries: Sequence[IndexEntry]) -> List[str]:
        return [self.link(entry) for entry in entries]


__all__ = ["INDEX_FILENAME", "IndexEntry", "IndexSections", "MasterIndexGenerator"]
