"""Builds the normal-dependency graph from indexed metadata."""

from __future__ import annotations

from typing import Dict, List

from ..models import DependencyEdge, DependencyGraph, DependencyKind, DocMdError, PackageRecord
from ..metadata import MetadataIndex


class GraphIntegrityError(DocMdError):
    """Raised when the resolve graph references a package id missing from the metadata."""


def declared_edges(index: MetadataIndex) -> List[DependencyEdge]:
    """Return every resolved edge annotated with the declared kinds that activate it.

    One resolved edge yields an entry per matching declaration, so a crate used
    both as a dev and a normal dependency appears twice. Resolved edges with no
    matching declaration are dropped.
    """
    edges: List[DependencyEdge] = []
    for node in index.nodes:
        consumer = index.get(node.id)
        if consumer is None:
            raise GraphIntegrityError(f"Resolve node {node.id} is not a known package")
        for dependency_id in node.dependencies:
            dependency = _require(index, dependency_id, consumer=node.id)
            for declared in consumer.dependencies:
                if declared.name != dependency.name:
                    continue
                edges.append(
                    DependencyEdge(
                        source=node.id,
                        target=dependency_id,
                        kind=declared.kind,
                        target_platform=declared.target_platform,
                    )
                )
    return edges


def build_normal_dependency_graph(index: MetadataIndex) -> DependencyGraph:
    """Return the resolved edges whose dependency is declared as a normal dependency.

    The resolve step also lists edges activated only through dev or build
    dependencies; those are left out. Every resolve node gets an entry and
    dependency order follows the resolve nodes.
    """
    adjacency: Dict[str, List[str]] = {node.id: [] for node in index.nodes}
    for edge in declared_edges(index):
        if edge.kind is not DependencyKind.NORMAL:
            continue
        targets = adjacency[edge.source]
        # platform-specific declarations of one crate resolve to the same id
        if edge.target not in targets:
            targets.append(edge.target)
    return DependencyGraph(adjacency)


def _require(index: MetadataIndex, package_id: str, *, consumer: str) -> PackageRecord:
    package = index.get(package_id)
    if package is None:
        raise GraphIntegrityError(
            f"Dependency {package_id} of {consumer} is not a known package"
        )
    return package
