"""Graph reduction passes run after platform propagation.

Order matters: platform trimming can orphan external features, which the
feature trimming pass then removes to a fixpoint, and only the surviving
graph is transitively reduced.
"""

from __future__ import annotations

import logging
from typing import List

import networkx as nx

from errors import CyclicFeatureGraph
from graph.identity import Feature

logger = logging.getLogger(__name__)


def _remove(graph, node: Feature) -> None:
    graph.features.remove_node(node)
    graph.platforms.pop(node, None)
    if node.fid is not None:
        graph.fids.pop(node.fid, None)


def trim_unused_platforms(graph) -> List[Feature]:
    """Remove nodes whose computed platform set is empty."""
    removed = [
        node for node, node_platforms in graph.platforms.items()
        if not node_platforms and not node.is_root
    ]
    for node in removed:
        _remove(graph, node)
    logger.debug("Trimmed %d nodes unreachable on requested platforms", len(removed))
    return removed


def trim_unused_features(graph) -> List[Feature]:
    """Remove external features nothing activates, until none are left."""
    removed: List[Feature] = []
    while True:
        to_remove = [
            node for node, degree in graph.features.in_degree()
            if degree == 0 and node.is_external
        ]
        if not to_remove:
            break
        for node in to_remove:
            _remove(graph, node)
        removed.extend(to_remove)
    logger.debug("Trimmed %d unused external features", len(removed))
    return removed


def transitive_reduction(graph) -> None:
    """Keep only edges not implied by longer paths.

    Raises:
        CyclicFeatureGraph: If feature activation is cyclic.
    """
    features = graph.features
    try:
        order = list(nx.topological_sort(features))
    except nx.NetworkXUnfeasible as e:
        raise CyclicFeatureGraph([edge[0] for edge in nx.find_cycle(features)]) from e
    logger.debug("Topological order has %d nodes", len(order))

    before = features.number_of_edges()
    reduction = nx.transitive_reduction(nx.DiGraph(features))
    redundant = [
        (u, v, key) for u, v, key in features.edges(keys=True)
        if not reduction.has_edge(u, v)
    ]
    features.remove_edges_from(redundant)
    logger.debug("Transitive reduction, edges %d -> %d", before, features.number_of_edges())


def optimize(graph) -> None:
    trim_unused_platforms(graph)
    trim_unused_features(graph)
    transitive_reduction(graph)
