"""Run-level aggregation of per-target outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .models import OutcomeRecord, OutcomeStatus


def _names(outcomes: Sequence[OutcomeRecord], status: OutcomeStatus) -> List[str]:
    return [outcome.name for outcome in outcomes if outcome.status is status]


@dataclass
class RunReport:
    """Outcomes of one docmd invocation, in the order targets were processed."""

    mode: str
    output_dir: Path
    primary: List[OutcomeRecord] = field(default_factory=list)
    dependencies: List[OutcomeRecord] = field(default_factory=list)
    dependencies_requested: bool = False
    index_path: Optional[Path] = None

    @property
    def outcomes(self) -> List[OutcomeRecord]:
        return [*self.primary, *self.dependencies]

    @property
    def documented(self) -> List[str]:
        return _names(self.outcomes, OutcomeStatus.DOCUMENTED)

    @property
    def skipped(self) -> List[str]:
        return _names(self.outcomes, OutcomeStatus.SKIPPED)

    @property
    def failed(self) -> List[str]:
        return _names(self.outcomes, OutcomeStatus.FAILED)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    def render_summary(self) -> str:
        """Return the human-readable summary printed at the end of a run."""
        lines = ["Summary:"]
        lines.extend(self._tally_lines("Targets", self.primary))
        if self.dependencies_requested:
            if self.dependencies:
                lines.extend(self._tally_lines("Dependencies", self.dependencies))
            else:
                lines.append("  Dependencies: none found")

        failures = [outcome for outcome in self.outcomes if outcome.status is OutcomeStatus.FAILED]
        if failures:
            lines.append("")
            lines.append("Failures:")
            for outcome in failures:
                detail = (outcome.detail or "unknown error").strip().splitlines()
                lines.append(f"  ✗ {outcome.name}: {detail[0] if detail else 'unknown error'}")
                lines.extend(f"      {extra}" for extra in detail[1:] if extra.strip())

        if self.index_path is not None:
            lines.append("")
            lines.append(f"✓ Master index: {self.index_path}")
        return "\n".join(lines)

    @staticmethod
    def _tally_lines(label: str, outcomes: Sequence[OutcomeRecord]) -> List[str]:
        documented = _names(outcomes, OutcomeStatus.DOCUMENTED)
        skipped = _names(outcomes, OutcomeStatus.SKIPPED)
        failed = _names(outcomes, OutcomeStatus.FAILED)
        lines = [f"  {label}: {len(documented)} documented"]
        if skipped:
            lines.append(f"    ⊘ Skipped: {len(skipped)} ({', '.join(skipped)})")
        if failed:
            lines.append(f"    ✗ Failed: {len(failed)} ({', '.join(failed)})")
        return lines


__all__ = ["RunReport"]
