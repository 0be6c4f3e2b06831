"""Propagation of requested target platforms through the feature graph.

Starting from Root, which is active on every requested platform, each node
inherits the platforms of the first node that reaches it, narrowed to the
platforms on which the connecting edge applies. A node reached again via a
different edge keeps its first set (first writer wins). The traversal is a
LIFO stack; outgoing edges are visited newest first and every target is
pushed, assigned or not, so the order is deterministic. Each node is
expanded once, which also bounds the walk on cyclic graphs.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from common.logging_utils import Timer, extra_context, is_debug_enabled
from graph.identity import Link
from targets.cfg_expr import PlatformEvaluator

logger = logging.getLogger(__name__)


def edge_platforms(link: Link, candidates: Sequence[str], evaluator: PlatformEvaluator) -> List[str]:
    """Subset of `candidates` on which `link` is active.

    An edge without kind entries is unconditional; otherwise one entry whose
    predicate holds is enough.
    """
    if not link.kinds:
        return list(candidates)
    return [
        p for p in candidates
        if any(evaluator.matches(k.target, p) for k in link.kinds)
    ]


def fill_in_platforms(graph, platforms: Sequence[str],
                      evaluator: Optional[PlatformEvaluator] = None) -> None:
    """Compute `graph.platforms` for every node reachable from Root."""
    evaluator = evaluator or PlatformEvaluator()
    graph.platforms[graph.root] = list(platforms)
    to_visit = [graph.root]
    expanded = set()

    with Timer() as t:
        while to_visit:
            source = to_visit.pop()
            if source in expanded:
                continue
            expanded.add(source)
            current = graph.platforms[source]
            for target, link in reversed(list(graph.outgoing(source))):
                if target not in graph.platforms:
                    graph.platforms[target] = edge_platforms(link, current, evaluator)
                to_visit.append(target)

    if is_debug_enabled(logger):
        for node, node_platforms in sorted(graph.platforms.items()):
            logger.debug("%s: %s", node, node_platforms)
        logger.debug(
            "Platforms propagated",
            extra=extra_context(
                event="function_exit",
                component="graph",
                action="fill_in_platforms",
                count=len(graph.platforms),
                duration_ms=t.duration_ms,
            ),
        )
