"""Text trees answering "why is this feature built" and "what does this pull in"."""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Set, Tuple

import semantic_version

from constants import DepKind
from graph.identity import Feature, Link, names_match

Neighbors = Callable[[Feature], Iterable[Tuple[Feature, Link]]]


def _same_version(wanted: Optional[str], actual: str) -> bool:
    if wanted is None or wanted == "*":
        return True
    return semantic_version.Version(wanted) == semantic_version.Version(actual)


def find_features(graph, name: str, feature: Optional[str] = None,
                  version: Optional[str] = None) -> List[Feature]:
    """Nodes of package `name` (any spelling) carrying `feature`.

    Without a feature name the base feature of each matching version is
    returned.
    """
    found = []
    for node in graph.features.nodes:
        if node.is_root or not names_match(node.pid.name, name):
            continue
        if not _same_version(version, node.pid.version):
            continue
        if node.fid.feature == feature:
            found.append(node)
    return sorted(found)


def link_note(link: Link) -> str:
    """Short annotation of an edge: optional flag, non-normal kinds, platform predicates."""
    notes = []
    if link.optional:
        notes.append("optional")
    kinds = sorted({k.kind.value for k in link.kinds if k.kind is not DepKind.NORMAL})
    notes.extend(kinds)
    targets = sorted({k.target for k in link.kinds if k.target is not None})
    notes.extend(targets)
    return f" [{', '.join(notes)}]" if notes else ""


def render_tree(start: Feature, neighbors: Neighbors) -> List[str]:
    """Render the tree below `start`; subtrees shown before are marked (*)."""
    lines = [str(start)]
    seen: Set[Feature] = {start}

    def walk(node: Feature, prefix: str) -> None:
        children = sorted(neighbors(node), key=lambda item: item[0])
        for i, (child, link) in enumerate(children):
            last = i == len(children) - 1
            branch = "└── " if last else "├── "
            if child in seen:
                lines.append(f"{prefix}{branch}{child}{link_note(link)} (*)")
                continue
            seen.add(child)
            lines.append(f"{prefix}{branch}{child}{link_note(link)}")
            walk(child, prefix + ("    " if last else "│   "))

    walk(start, "")
    return lines


def explain(graph, name: str, feature: Optional[str] = None,
            version: Optional[str] = None) -> List[str]:
    """Reverse trees from each matching feature up to Root."""
    lines: List[str] = []
    for node in find_features(graph, name, feature, version):
        lines.extend(render_tree(node, graph.incoming))
    return lines


def tree(graph, name: Optional[str] = None, feature: Optional[str] = None,
         version: Optional[str] = None) -> List[str]:
    """Forward trees from Root, or from each matching feature when a name is given."""
    if name is None:
        return render_tree(graph.root, graph.outgoing)
    lines: List[str] = []
    for node in find_features(graph, name, feature, version):
        lines.extend(render_tree(node, graph.outgoing))
    return lines
