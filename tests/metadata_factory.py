"""Helpers assembling in-memory metadata snapshots for graph tests."""

from constants import DepKind
from metadata.models import (
    DepKindInfo,
    Dependency,
    Metadata,
    NodeDep,
    Package,
    Resolve,
    ResolveNode,
    Target,
)

LINUX = "x86_64-unknown-linux-gnu"
WINDOWS = "x86_64-pc-windows-msvc"
MACOS = "aarch64-apple-darwin"


def pkg_id(name, version):
    return f"{name} {version} (registry+https://github.com/rust-lang/crates.io-index)"


def package(name, version="1.0.0", deps=(), features=None, lib_name=None, manifest_path=None):
    return Package(
        id=pkg_id(name, version),
        name=name,
        version=version,
        dependencies=tuple(deps),
        features={k: tuple(v) for k, v in (features or {}).items()},
        targets=(Target(name=lib_name or name.replace("-", "_"), kind=("lib",)),),
        manifest_path=manifest_path,
    )


def declared(name, optional=False, features=(), rename=None, kind=DepKind.NORMAL, target=None):
    return Dependency(
        name=name,
        optional=optional,
        features=tuple(features),
        rename=rename,
        kind=kind,
        target=target,
    )


def resolved(pkg, target=None, kind=DepKind.NORMAL, name=None, kinds=None):
    if kinds is None:
        kinds = (DepKindInfo(kind=kind, target=target),)
    return NodeDep(
        name=name or pkg.name.replace("-", "_"),
        pkg=pkg.id,
        dep_kinds=tuple(kinds),
    )


def snapshot(packages, members=(), deps=None):
    """Metadata with resolve nodes index-aligned to `packages`.

    `deps` maps a package name to its resolved NodeDeps.
    """
    deps = deps or {}
    nodes = tuple(ResolveNode(id=p.id, deps=tuple(deps.get(p.name, ()))) for p in packages)
    return Metadata(
        packages=tuple(packages),
        workspace_members=tuple(p.id for p in members),
        resolve=Resolve(nodes=nodes),
    )


def node(graph, name, feature=None):
    """The surviving node of package `name` with `feature`, or None."""
    for n in graph.features.nodes:
        if n.fid is not None and n.pid.name == name and n.fid.feature == feature:
            return n
    return None


def edge_set(graph):
    return {(str(u), str(v)) for u, v in graph.features.edges()}
