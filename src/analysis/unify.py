"""Feature unification across workspace members.

Building the whole workspace activates the union of every member's feature
requirements on each external package, while building one member alone
may activate fewer. The patches computed here make each member request the
workspace-wide feature set explicitly so both builds agree.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Collection, Dict, Iterable, List, Sequence, Set, Tuple

from graph.identity import Feature, Pid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependencyPatch:
    """One dependency entry to pin in a member manifest."""
    name: str
    version: str
    features: Tuple[str, ...]


def _features_by_package(nodes: Iterable[Feature]) -> Dict[Pid, List[str]]:
    found: Dict[Pid, Set[str]] = {}
    for node in nodes:
        if not node.is_external:
            continue
        names = found.setdefault(node.pid, set())
        if node.fid.feature is not None:
            names.add(node.fid.feature)
    return {pid: sorted(names) for pid, names in sorted(found.items())}


def unified_features(graph) -> Dict[Pid, List[str]]:
    """External package -> features reachable from any member's default activation."""
    return _features_by_package(graph.reachable())


def member_features(graph, member: Pid) -> Dict[Pid, List[str]]:
    """External package -> features reachable from one member alone."""
    entry = graph.entry_point(member)
    if entry is None:
        return {}
    return _features_by_package(graph.reachable(entry))


def unification_patches(graph) -> Dict[Pid, List[DependencyPatch]]:
    """Member -> dependency entries whose features differ from the unified set."""
    unified = unified_features(graph)
    patches: Dict[Pid, List[DependencyPatch]] = {}
    for member in sorted(graph.workspace_members):
        own = member_features(graph, member)
        changed = [pid for pid, feats in own.items() if feats != unified[pid]]
        names = Counter(pid.name for pid in changed)
        entries = []
        for pid in changed:
            if names[pid.name] > 1:
                logger.warning(
                    "%s: %s is needed at several versions, not unifying %s",
                    member.name, pid.name, pid.version,
                )
                continue
            entries.append(DependencyPatch(pid.name, pid.version, tuple(unified[pid])))
        if entries:
            patches[member] = entries
            logger.info("%s needs %d unified dependencies", member.name, len(entries))
    return patches


def pinned_entries(graph, member: Pid, names: Collection[str]) -> List[DependencyPatch]:
    """What `hack` would pin today for the dependencies `names` of `member`."""
    unified = unified_features(graph)
    own = [pid for pid in member_features(graph, member) if pid.name in names]
    return [DependencyPatch(pid.name, pid.version, tuple(unified[pid])) for pid in own]


def dependency_checksum(entries: Sequence[DependencyPatch]) -> str:
    """sha256 over the pinned entries, independent of their order."""
    canonical = sorted([e.name, e.version, sorted(e.features)] for e in entries)
    return hashlib.sha256(json.dumps(canonical).encode("utf-8")).hexdigest()
