"""
collab_graph/render.py - Boundary between the graph state engine and a renderer.

The renderer (force layout, drawing, zooming) lives outside this package. It
receives GraphSnapshot objects and may use the sizing helpers below; it never
sends anything back into the core.
"""

import logging
from typing import Protocol

import numpy as np

from collab_graph.graph.model import GraphSnapshot, Node
from collab_graph.graph.records import Edge

logger = logging.getLogger(__name__)

PROJECT_RADIUS = 10
PERSON_RADIUS = 5


class Renderer(Protocol):
    def update(self, snapshot: GraphSnapshot) -> None:
        ...


class NullRenderer:
    """Renderer that only logs what it would draw."""

    def update(self, snapshot: GraphSnapshot) -> None:
        logger.debug(
            "Render %d nodes, %d edges (%s).",
            len(snapshot.nodes),
            len(snapshot.edges),
            snapshot.label or "full graph",
        )


def node_radius(node: Node) -> int:
    """Projects are drawn larger than persons."""
    return PROJECT_RADIUS if node.is_project else PERSON_RADIUS


def edge_stroke_width(edge: Edge) -> int:
    """Stroke width 1-4 growing with the order of magnitude of the commit count."""
    with np.errstate(divide="ignore"):
        magnitude = np.log10(max(edge.num_commits, 0))
    return int(np.floor(np.clip(magnitude, 1, 4)))


def confine_position(
    x: float,
    y: float,
    width: float,
    height: float,
    radius: float = PROJECT_RADIUS,
) -> tuple[float, float]:
    """Clamp a layout position so a node of ``radius`` stays inside the canvas."""
    cx, cy = np.clip([x, y], radius, [width - radius, height - radius])
    return float(cx), float(cy)
