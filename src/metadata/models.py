"""Data models for a resolved workspace metadata snapshot.

Mirrors the JSON emitted by `cargo metadata --format-version 1`. Every
model is immutable; graph identities index into `Metadata.packages` and
borrow names from it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from constants import Constants, DepKind


def _kind_from_json(raw: Optional[str]) -> DepKind:
    """cargo spells the normal kind as null."""
    if raw is None:
        return DepKind.NORMAL
    return DepKind(raw)


@dataclass(frozen=True)
class DepKindInfo:
    """One (build kind, platform predicate) pairing of a resolved edge."""
    kind: DepKind = DepKind.NORMAL
    target: Optional[str] = None  # "cfg(...)" expression or a plain triple

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DepKindInfo":
        return cls(kind=_kind_from_json(data.get("kind")), target=data.get("target"))


@dataclass(frozen=True)
class Dependency:
    """A dependency as declared in a package manifest."""
    name: str
    req: str = "*"
    kind: DepKind = DepKind.NORMAL
    optional: bool = False
    uses_default_features: bool = True
    features: Tuple[str, ...] = ()
    target: Optional[str] = None
    rename: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dependency":
        return cls(
            name=data["name"],
            req=data.get("req", "*"),
            kind=_kind_from_json(data.get("kind")),
            optional=bool(data.get("optional", False)),
            uses_default_features=bool(data.get("uses_default_features", True)),
            features=tuple(data.get("features") or ()),
            target=data.get("target"),
            rename=data.get("rename"),
        )


@dataclass(frozen=True)
class Target:
    """A build target of a package (lib, bin, test, ...)."""
    name: str
    kind: Tuple[str, ...] = ("lib",)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Target":
        return cls(name=data["name"], kind=tuple(data.get("kind") or ()))

    def is_library(self) -> bool:
        return any(k in Constants.LIBRARY_TARGET_KINDS for k in self.kind)


@dataclass(frozen=True)
class Package:
    """A package with its declared dependencies and feature table."""
    id: str
    name: str
    version: str
    dependencies: Tuple[Dependency, ...] = ()
    features: Dict[str, Tuple[str, ...]] = field(default_factory=dict, hash=False)
    targets: Tuple[Target, ...] = ()
    manifest_path: Optional[str] = None
    description: Optional[str] = None
    readme: Optional[str] = None
    documentation: Optional[str] = None
    homepage: Optional[str] = None
    repository: Optional[str] = None
    source: Optional[str] = None  # None for path packages

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Package":
        return cls(
            id=data["id"],
            name=data["name"],
            version=data["version"],
            dependencies=tuple(Dependency.from_dict(d) for d in data.get("dependencies") or ()),
            features={k: tuple(v) for k, v in (data.get("features") or {}).items()},
            targets=tuple(Target.from_dict(t) for t in data.get("targets") or ()),
            manifest_path=data.get("manifest_path"),
            description=data.get("description"),
            readme=data.get("readme"),
            documentation=data.get("documentation"),
            homepage=data.get("homepage"),
            repository=data.get("repository"),
            source=data.get("source"),
        )

    def library_target(self) -> Optional[Target]:
        return next((t for t in self.targets if t.is_library()), None)


@dataclass(frozen=True)
class NodeDep:
    """A dependency edge as chosen by the resolver."""
    name: str
    pkg: str
    dep_kinds: Tuple[DepKindInfo, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodeDep":
        return cls(
            name=data["name"],
            pkg=data["pkg"],
            dep_kinds=tuple(DepKindInfo.from_dict(k) for k in data.get("dep_kinds") or ()),
        )


@dataclass(frozen=True)
class ResolveNode:
    """Resolved dependencies of a single package."""
    id: str
    deps: Tuple[NodeDep, ...] = ()
    features: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResolveNode":
        return cls(
            id=data["id"],
            deps=tuple(NodeDep.from_dict(d) for d in data.get("deps") or ()),
            features=tuple(data.get("features") or ()),
        )


@dataclass(frozen=True)
class Resolve:
    nodes: Tuple[ResolveNode, ...] = ()
    root: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Resolve":
        return cls(
            nodes=tuple(ResolveNode.from_dict(n) for n in data.get("nodes") or ()),
            root=data.get("root"),
        )


@dataclass(frozen=True)
class Metadata:
    """Immutable workspace snapshot: packages, members and the resolve graph."""
    packages: Tuple[Package, ...] = ()
    workspace_members: Tuple[str, ...] = ()
    resolve: Optional[Resolve] = None
    workspace_root: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Metadata":
        resolve = data.get("resolve")
        return cls(
            packages=tuple(Package.from_dict(p) for p in data.get("packages") or ()),
            workspace_members=tuple(data.get("workspace_members") or ()),
            resolve=Resolve.from_dict(resolve) if resolve is not None else None,
            workspace_root=data.get("workspace_root"),
        )
