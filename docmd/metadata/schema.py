"""Pydantic schema for the subset of `cargo metadata` output docmd relies on."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Model(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class RawDependency(_Model):
    name: str
    kind: Optional[Literal["normal", "dev", "build"]] = None
    target: Optional[str] = None


class RawTarget(_Model):
    name: str
    kind: List[str] = Field(default_factory=list)


class RawPackage(_Model):
    id: str
    name: str
    version: str
    dependencies: List[RawDependency] = Field(default_factory=list)
    targets: List[RawTarget] = Field(default_factory=list)


class RawNode(_Model):
    id: str
    dependencies: List[str] = Field(default_factory=list)


class RawResolve(_Model):
    # required but nullable: virtual workspaces have no root package
    root: Optional[str]
    nodes: List[RawNode]


class RawMetadata(_Model):
    packages: List[RawPackage]
    resolve: RawResolve
    workspace_members: List[str] = Field(default_factory=list)
    target_directory: Optional[str] = None
    workspace_root: Optional[str] = None
