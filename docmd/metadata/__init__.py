"""Cargo metadata ingestion and package lookup."""

from .index import MetadataIndex, MetadataShapeError, ResolveNode, library_artifact_name
from .provider import MetadataError, MetadataProvider

__all__ = [
    "MetadataError",
    "MetadataIndex",
    "MetadataProvider",
    "MetadataShapeError",
    "ResolveNode",
    "library_artifact_name",
]
