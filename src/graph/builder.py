"""Feature graph construction.

Turns a resolved metadata snapshot into a directed graph whose nodes are
"package with a feature enabled" and whose edges read "activating the
source activates the target". The graph is a networkx MultiDiGraph: the
same pair of features can be linked for several reasons, each edge
carrying its own Link under the `link` attribute.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

import networkx as nx

from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants
from errors import IdentityMismatch, MissingResolveData, NameNotFound
from graph.identity import (
    UNCONDITIONAL,
    Feature,
    Fid,
    Link,
    Pid,
    find_dep_by_name,
    names_match,
)
from metadata.models import Dependency, Metadata, NodeDep, Package, ResolveNode

logger = logging.getLogger(__name__)


class FeatGraph:
    """Feature activation graph of one workspace snapshot.

    Attributes:
        meta: The snapshot every identity indexes into.
        features: The graph; nodes are Feature values, edges carry a Link.
        root: Synthetic node standing for all workspace entry points.
        workspace_members: Pids of the workspace's own packages.
        fids: Fid -> node, one node per distinct Fid.
        platforms: node -> platforms it can be active on, filled by propagation.
        cache: raw package id -> Pid.
        library_renames: raw package id -> package name, for packages whose
            library target is named differently from the package.
    """

    def __init__(self, meta: Metadata):
        if meta.resolve is None:
            raise MissingResolveData("Couldn't resolve the dependencies: metadata has no resolve graph")
        self.meta = meta
        self.features = nx.MultiDiGraph()
        self.root = Feature.root()
        self.features.add_node(self.root)
        self.fids: Dict[Fid, Feature] = {}
        self.platforms: Dict[Feature, List[str]] = {}

        self.cache: Dict[str, Pid] = {
            package.id: Pid(ix, meta) for ix, package in enumerate(meta.packages)
        }
        self.workspace_members: Set[Pid] = {
            self.cache[raw] for raw in meta.workspace_members if raw in self.cache
        }

        self.library_renames: Dict[str, str] = {}
        for package in meta.packages:
            target = package.library_target()
            if target is not None and target.name != package.name:
                self.library_renames[package.id] = package.name

    @classmethod
    def init(cls, meta: Metadata, platforms: Sequence[str], evaluator=None) -> "FeatGraph":
        """Build, propagate platforms and optimize in one pass."""
        # Imported here: both modules operate on FeatGraph instances.
        from graph.optimize import optimize  # pylint: disable=import-outside-toplevel
        from graph.platforms import fill_in_platforms  # pylint: disable=import-outside-toplevel

        graph = cls(meta)
        graph.build()
        fill_in_platforms(graph, platforms, evaluator)
        optimize(graph)
        return graph

    # ---------- identity ----------

    def node_for(self, fid: Fid) -> Feature:
        """Return the node of `fid`, creating it on first use."""
        node = self.fids.get(fid)
        if node is None:
            if fid.pid in self.workspace_members:
                node = Feature.workspace(fid)
            else:
                node = Feature.external(fid)
            self.fids[fid] = node
            self.features.add_node(node)
        return node

    def lookup(self, fid: Fid) -> Optional[Feature]:
        """Return the node of `fid` if it exists and was not trimmed."""
        node = self.fids.get(fid)
        if node is None or node not in self.features:
            return None
        return node

    def package_identity(self, raw_id: str) -> Pid:
        try:
            return self.cache[raw_id]
        except KeyError as e:
            raise IdentityMismatch(f"Resolved package {raw_id} is not in the package list") from e

    def resolve_declared_name(self, declared: Sequence[Dependency], resolved: NodeDep,
                              package: str = "") -> Dependency:
        """Match a resolved dependency to its declaration.

        Tries the resolved name first, then the package name when the
        library target of the dependency is renamed.
        """
        rename = self.library_renames.get(resolved.pkg)
        if rename is None:
            return find_dep_by_name(declared, resolved.name, package)
        try:
            return find_dep_by_name(declared, resolved.name, package)
        except NameNotFound:
            pass
        try:
            return find_dep_by_name(declared, rename, package)
        except NameNotFound:
            raise NameNotFound(resolved.name, package) from None

    # ---------- construction ----------

    def add_edge(self, source: Feature, target: Feature, link: Link) -> None:
        self.features.add_edge(source, target, link=link)

    def build(self) -> "FeatGraph":
        resolves = self.meta.resolve.nodes
        if len(resolves) != len(self.meta.packages):
            raise IdentityMismatch(
                f"{len(self.meta.packages)} packages but {len(resolves)} resolved nodes"
            )
        with Timer() as t:
            for ix, (package, node) in enumerate(zip(self.meta.packages, resolves)):
                if package.id != node.id:
                    raise IdentityMismatch(f"Package {package.id} is paired with resolve entry {node.id}")
                self.add_package(ix, package, node)

        if is_debug_enabled(logger):
            logger.debug(
                "Feature graph built",
                extra=extra_context(
                    event="function_exit",
                    component="graph",
                    action="build",
                    nodes=self.features.number_of_nodes(),
                    edges=self.features.number_of_edges(),
                    duration_ms=t.duration_ms,
                ),
            )
        return self

    def add_package(self, ix: int, package: Package, node: ResolveNode) -> None:
        this = Pid(ix, self.meta)
        base = self.node_for(Fid(this, None))

        if this in self.workspace_members:
            if Constants.DEFAULT_FEATURE in package.features:
                entry = self.node_for(Fid(this, Constants.DEFAULT_FEATURE))
            else:
                entry = base
            self.add_edge(self.root, entry, UNCONDITIONAL)

        # optional dependencies hang off the local feature sharing their name,
        # everything else off the base feature
        for resolved in node.deps:
            declared = self.resolve_declared_name(package.dependencies, resolved, package.name)
            dep_pid = self.package_identity(resolved.pkg)
            link = Link(optional=declared.optional, kinds=resolved.dep_kinds)
            if link.optional:
                source = self.node_for(Fid(this, resolved.name))
            else:
                source = base

            if not declared.features:
                self.add_edge(source, self.node_for(Fid(dep_pid, None)), link)
            else:
                for feat in declared.features:
                    self.add_edge(source, self.node_for(Fid(dep_pid, feat)), link)

        for local_feat, requirements in package.features.items():
            local = self.node_for(Fid(this, local_feat))
            self.add_edge(local, base, UNCONDITIONAL)

            for requirement in requirements:
                self._add_requirement(this, package, node, local, requirement)

    def _add_requirement(self, this: Pid, package: Package, node: ResolveNode,
                         local: Feature, requirement: str) -> None:
        if requirement.startswith("dep:"):
            other = self.node_for(Fid(this, requirement[len("dep:"):]))
            self.add_edge(local, other, UNCONDITIONAL)
            return

        if "/" not in requirement:
            self.add_edge(local, self.node_for(Fid(this, requirement)), UNCONDITIONAL)
            return

        dep_name, dep_feat = requirement.split("/", 1)
        dep_name = dep_name.rstrip("?")
        declaration = find_dep_by_name(package.dependencies, dep_name, package.name)
        resolution = next((d for d in node.deps if names_match(dep_name, d.name)), None)
        if resolution is None:
            # `dep/feat` spells the package name, the resolve uses the library name
            resolution = next(
                (d for d in node.deps if names_match(self.library_renames.get(d.pkg, ""), dep_name)),
                None,
            )
        if resolution is None:
            # not resolved under this configuration, nothing to point at
            logger.debug("Skipping %s of %s: %s is not resolved", requirement, package.name, dep_name)
            return
        dep_pid = self.package_identity(resolution.pkg)
        link = Link(optional=declaration.optional, kinds=resolution.dep_kinds)
        self.add_edge(local, self.node_for(Fid(dep_pid, dep_feat)), link)

    # ---------- queries ----------

    def reachable(self, start: Optional[Feature] = None) -> Set[Feature]:
        """Nodes reachable from `start` (Root by default), `start` included."""
        start = self.root if start is None else start
        return nx.descendants(self.features, start) | {start}

    def outgoing(self, feature: Feature) -> Iterator[Tuple[Feature, Link]]:
        for _, target, link in self.features.out_edges(feature, data="link"):
            yield target, link

    def incoming(self, feature: Feature) -> Iterator[Tuple[Feature, Link]]:
        for source, _, link in self.features.in_edges(feature, data="link"):
            yield source, link

    def entry_point(self, member: Pid) -> Optional[Feature]:
        """The node a build of `member` alone starts from.

        Its `default` feature when declared, otherwise its base feature. Root
        may not link to it directly once the graph is reduced.
        """
        if Constants.DEFAULT_FEATURE in member.package.features:
            return self.lookup(Fid(member, Constants.DEFAULT_FEATURE))
        return self.lookup(Fid(member, None))

    def __contains__(self, feature: Feature) -> bool:
        return feature in self.features

    def __len__(self) -> int:
        return self.features.number_of_nodes()
