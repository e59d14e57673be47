"""Core data models shared across docmd components."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, Mapping, Optional, Sequence, Tuple

# Cargo target kinds that produce a linkable library (and therefore rustdoc JSON).
LIBRARY_TARGET_KINDS = frozenset({"lib", "rlib", "dylib", "cdylib", "staticlib", "proc-macro"})

ExclusionSet = FrozenSet[str]
TransitiveDependencyMap = Dict[str, str]


class DocMdError(RuntimeError):
    """Base class for errors that abort a docmd run before or outside orchestration."""


def normalize_name(name: str) -> str:
    """Return the directory-safe form of a crate name."""
    return name.replace("-", "_")


class DependencyKind(str, Enum):
    """Declared kind of a dependency in a package manifest."""

    NORMAL = "normal"
    DEV = "dev"
    BUILD = "build"

    @classmethod
    def from_raw(cls, value: Optional[str]) -> "DependencyKind":
        # cargo emits null for normal dependencies
        if value is None:
            return cls.NORMAL
        return cls(value)


@dataclass(frozen=True)
class BuildTarget:
    """A compilation target (lib, bin, test, ...) declared by a package."""

    name: str
    kinds: Tuple[str, ...] = ()

    @property
    def is_library(self) -> bool:
        return any(kind in LIBRARY_TARGET_KINDS for kind in self.kinds)


@dataclass(frozen=True)
class DeclaredDependency:
    """A dependency as declared in a package manifest."""

    name: str
    kind: DependencyKind = DependencyKind.NORMAL
    target_platform: Optional[str] = None


@dataclass(frozen=True)
class PackageRecord:
    """Identity of one package within a metadata snapshot."""

    id: str
    name: str
    version: str
    library_artifact_name: str
    dependencies: Tuple[DeclaredDependency, ...] = ()
    targets: Tuple[BuildTarget, ...] = ()

    @property
    def spec(self) -> str:
        """Return the `name@version` package spec understood by cargo."""
        return f"{self.name}@{self.version}" if self.version else self.name


@dataclass(frozen=True)
class DependencyEdge:
    """A declared dependency relation between two resolved packages."""

    source: str
    target: str
    kind: DependencyKind
    target_platform: Optional[str] = None


class DependencyGraph:
    """Adjacency list of normal dependency edges keyed by consumer id."""

    def __init__(self, adjacency: Mapping[str, Sequence[str]]) -> None:
        self._adjacency: Dict[str, Tuple[str, ...]] = {
            package_id: tuple(dependency_ids) for package_id, dependency_ids in adjacency.items()
        }

    def dependencies_of(self, package_id: str) -> Tuple[str, ...]:
        return self._adjacency.get(package_id, ())

    def __contains__(self, package_id: object) -> bool:
        return package_id in self._adjacency

    def __iter__(self) -> Iterator[str]:
        return iter(self._adjacency)

    def __len__(self) -> int:
        return len(self._adjacency)


class TargetKind(str, Enum):
    """Why a package is being documented."""

    CURRENT = "current"
    WORKSPACE_MEMBER = "workspace_member"
    EXPLICIT = "explicit"
    DEPENDENCY = "dependency"


@dataclass(frozen=True)
class DocumentationTarget:
    """One package the orchestrator must produce documentation for.

    ``package`` is ``None`` when the name could not be found in the metadata;
    such targets are still attempted by name only.
    """

    kind: TargetKind
    name: str
    version: Optional[str] = None
    package: Optional[PackageRecord] = None

    @classmethod
    def for_package(cls, kind: TargetKind, package: PackageRecord) -> "DocumentationTarget":
        return cls(kind=kind, name=package.name, version=package.version, package=package)

    @property
    def package_id(self) -> Optional[str]:
        return self.package.id if self.package is not None else None

    @property
    def spec(self) -> str:
        return f"{self.name}@{self.version}" if self.version else self.name

    @property
    def artifact_name(self) -> str:
        if self.package is not None:
            return self.package.library_artifact_name
        return normalize_name(self.name)


class OutcomeStatus(str, Enum):
    DOCUMENTED = "documented"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class OutcomeRecord:
    """Terminal classification of a single documentation target."""

    target: DocumentationTarget
    status: OutcomeStatus
    detail: Optional[str] = None

    @property
    def name(self) -> str:
        return self.target.name

    @property
    def documented(self) -> bool:
        return self.status is OutcomeStatus.DOCUMENTED

    @classmethod
    def documented_target(cls, target: DocumentationTarget) -> "OutcomeRecord":
        return cls(target=target, status=OutcomeStatus.DOCUMENTED)

    @classmethod
    def skipped_target(cls, target: DocumentationTarget, reason: str) -> "OutcomeRecord":
        return cls(target=target, status=OutcomeStatus.SKIPPED, detail=reason)

    @classmethod
    def failed_target(cls, target: DocumentationTarget, error: str) -> "OutcomeRecord":
        return cls(target=target, status=OutcomeStatus.FAILED, detail=error)


@dataclass(frozen=True)
class WorkContext:
    """Explicit working context threaded through every component."""

    project_root: Path
    output_dir: Path
    target_dir: Path = field(default_factory=lambda: Path("target"))
    include_private: bool = False

    def with_target_dir(self, target_dir: Path) -> "WorkContext":
        if not target_dir.is_absolute():
            target_dir = self.project_root / target_dir
        return replace(self, target_dir=target_dir)
