"""Transitive closure over the normal-dependency graph."""

from __future__ import annotations

from typing import AbstractSet, Iterable, List, Set

from ..models import DependencyGraph, ExclusionSet, TransitiveDependencyMap
from ..metadata import MetadataIndex
from .builder import GraphIntegrityError


class ClosureResolver:
    """Computes deduplicated dependency closures for one metadata snapshot."""

    def __init__(self, graph: DependencyGraph, index: MetadataIndex) -> None:
        self.graph = graph
        self.index = index

    def resolve(
        self,
        roots: str | Iterable[str],
        exclusion: AbstractSet[str] = frozenset(),
    ) -> TransitiveDependencyMap:
        """Return ``{name: version}`` for everything reachable from ``roots``.

        Edges into ``exclusion`` are neither followed nor recorded. Roots are
        never part of their own closure. When several versions of one crate
        are reachable, the one recorded last in traversal order wins.
        """
        root_ids: List[str] = [roots] if isinstance(roots, str) else list(roots)
        blocked: ExclusionSet = frozenset(exclusion) | frozenset(root_ids)

        closure: TransitiveDependencyMap = {}
        visited: Set[str] = set()
        stack: List[str] = list(root_ids)
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)

            for dependency_id in self.graph.dependencies_of(current):
                if dependency_id in blocked:
                    continue
                if dependency_id not in visited:
                    stack.append(dependency_id)
                package = self.index.get(dependency_id)
                if package is None:
                    raise GraphIntegrityError(f"Dependency {dependency_id} of {current} is not a known package")
                closure[package.name] = package.version
        return closure


__all__ = ["ClosureResolver"]
