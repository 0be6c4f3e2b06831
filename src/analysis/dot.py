"""Graphviz DOT export of a feature graph."""

from __future__ import annotations

import logging
from typing import Dict

import pydot

from constants import Constants
from graph.identity import Feature

logger = logging.getLogger(__name__)


def build_dot(graph) -> pydot.Dot:
    """Nodes labelled `name version` (+ feature) or `root`.

    External features are filled, optional edges are grey.
    """
    dot = pydot.Dot(Constants.DOT_GRAPH_ID, graph_type="digraph")
    ids: Dict[Feature, str] = {
        node: f"n{ix}" for ix, node in enumerate(sorted(graph.features.nodes))
    }
    for node, node_id in ids.items():
        # pydot quotes the label and escapes its newline
        attrs = {"label": node.label()}
        if node.is_external:
            attrs["style"] = "filled"
        dot.add_node(pydot.Node(node_id, **attrs))
    for source, target, link in sorted(graph.features.edges(data="link"), key=lambda e: (e[0], e[1])):
        color = Constants.DOT_OPTIONAL_COLOR if link.optional else Constants.DOT_REQUIRED_COLOR
        dot.add_edge(pydot.Edge(ids[source], ids[target], color=color))
    return dot


def render_dot(graph) -> str:
    text = build_dot(graph).to_string()
    return text if text.endswith("\n") else text + "\n"


def write_dot(graph, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_dot(graph))
    logger.info("DOT file has been successfully exported at: %s", path)
