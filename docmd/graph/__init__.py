"""Dependency graph construction and closure resolution."""

from .builder import GraphIntegrityError, build_normal_dependency_graph, declared_edges
from .closure import ClosureResolver

__all__ = [
    "ClosureResolver",
    "GraphIntegrityError",
    "build_normal_dependency_graph",
    "declared_edges",
]
