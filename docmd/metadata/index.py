"""Typed lookup tables built once from a `cargo metadata` document."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from ..models import (
    BuildTarget,
    DeclaredDependency,
    DependencyKind,
    DocMdError,
    PackageRecord,
    normalize_name,
)
from .schema import RawMetadata, RawPackage


class MetadataShapeError(DocMdError):
    """Raised when the metadata document lacks the fields docmd depends on."""


@dataclass(frozen=True)
class ResolveNode:
    """A node of the resolved dependency graph: one package and its resolved dependency ids."""

    id: str
    dependencies: Tuple[str, ...] = ()


def library_artifact_name(package: PackageRecord) -> str:
    """Return the on-disk artifact name for ``package``.

    This is the name of its library target when it has one and the normalized
    package name otherwise.
    """
    for target in package.targets:
        if target.is_library:
            return normalize_name(target.name)
    return normalize_name(package.name)


class MetadataIndex:
    """Read-only view over the packages of one metadata snapshot."""

    def __init__(
        self,
        packages: Iterable[PackageRecord],
        *,
        root_id: Optional[str] = None,
        workspace_member_ids: Sequence[str] = (),
        nodes: Sequence[ResolveNode] = (),
        target_directory: Optional[Path] = None,
    ) -> None:
        self._packages: Dict[str, PackageRecord] = {}
        self._ids_by_name_version: Dict[Tuple[str, str], str] = {}
        self._ids_by_name: Dict[str, List[str]] = {}
        for package in packages:
            if package.id in self._packages:
                raise MetadataShapeError(f"Duplicate package id in metadata: {package.id}")
            self._packages[package.id] = package
            self._ids_by_name_version.setdefault((package.name, package.version), package.id)
            self._ids_by_name.setdefault(package.name, []).append(package.id)
        self.root_id = root_id
        self.workspace_member_ids: Tuple[str, ...] = tuple(workspace_member_ids)
        self.nodes: Tuple[ResolveNode, ...] = tuple(nodes)
        self.target_directory = target_directory or Path("target")

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "MetadataIndex":
        """Validate a decoded metadata document and index it."""
        try:
            raw = RawMetadata.model_validate(document)
        except ValidationError as exc:
            raise MetadataShapeError(_describe_validation_error(exc)) from exc

        packages = [_package_from_raw(raw_package) for raw_package in raw.packages]
        nodes = [ResolveNode(id=node.id, dependencies=tuple(node.dependencies)) for node in raw.resolve.nodes]
        target_directory = Path(raw.target_directory) if raw.target_directory else None
        return cls(
            packages,
            root_id=raw.resolve.root,
            workspace_member_ids=raw.workspace_members,
            nodes=nodes,
            target_directory=target_directory,
        )

    @classmethod
    def from_json(cls, text: str) -> "MetadataIndex":
        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MetadataShapeError(f"Metadata is not valid JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise MetadataShapeError("Metadata document must be a JSON object")
        return cls.from_document(document)

    # ------------------------------------------------------------------
    # Lookups

    @property
    def packages(self) -> Tuple[PackageRecord, ...]:
        return tuple(self._packages.values())

    def __contains__(self, package_id: object) -> bool:
        return package_id in self._packages

    def __len__(self) -> int:
        return len(self._packages)

    def package(self, package_id: str) -> PackageRecord:
        """Return the package with ``package_id``; raises KeyError when unknown."""
        return self._packages[package_id]

    def get(self, package_id: str) -> Optional[PackageRecord]:
        return self._packages.get(package_id)

    def package_id(self, name: str, version: str) -> Optional[str]:
        return self._ids_by_name_version.get((name, version))

    def find(self, name: str, version: Optional[str] = None) -> Optional[PackageRecord]:
        """Find a package by name, optionally pinned to a version.

        Without a version the first package with that name in document order wins.
        """
        if version:
            package_id = self.package_id(name, version)
            return self._packages[package_id] if package_id is not None else None
        ids = self._ids_by_name.get(name)
        if not ids:
            return None
        return self._packages[ids[0]]

    @property
    def root_package(self) -> Optional[PackageRecord]:
        if self.root_id is None:
            return None
        return self._packages.get(self.root_id)

    def workspace_members(self) -> List[PackageRecord]:
        """Return workspace member packages in metadata order, skipping unknown ids."""
        return [self._packages[member_id] for member_id in self.workspace_member_ids if member_id in self._packages]


def _package_from_raw(raw: RawPackage) -> PackageRecord:
    targets = tuple(BuildTarget(name=target.name, kinds=tuple(target.kind)) for target in raw.targets)
    dependencies = tuple(
        DeclaredDependency(
            name=dependency.name,
            kind=DependencyKind.from_raw(dependency.kind),
            target_platform=dependency.target,
        )
        for dependency in raw.dependencies
    )
    package = PackageRecord(
        id=raw.id,
        name=raw.name,
        version=raw.version,
        library_artifact_name=normalize_name(raw.name),
        dependencies=dependencies,
        targets=targets,
    )
    return replace(package, library_artifact_name=library_artifact_name(package))


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors()[:5]:
        location = ".".join(str(part) for part in error.get("loc", ()))
        problems.append(f"{location or '<root>'}: {error.get('msg', 'invalid')}")
    return "Unexpected cargo metadata shape: " + "; ".join(problems)
