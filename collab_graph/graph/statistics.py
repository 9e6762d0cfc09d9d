"""
collab_graph/graph/statistics.py - Legend statistics for the current graph.

Counts nodes per kind plus the number of active edges, in the order the
legend shows them. Drawing the legend is left to the renderer.
"""

from collections import Counter
from dataclasses import dataclass

from collab_graph.graph.model import GraphModel, Node, NodeKind
from collab_graph.graph.records import Edge

# (locale node-type key, kind, hide when zero)
LEGEND_ORDER: list[tuple[str, NodeKind, bool]] = [
    ("project", NodeKind.PROJECT, False),
    ("support-team", NodeKind.SUPPORT_PROJECT, True),
    ("developer", NodeKind.DEVELOPER, True),
    ("external", NodeKind.EXTERNAL, True),
    ("support-member", NodeKind.SUPPORT_MEMBER, True),
    ("other", NodeKind.OTHER, False),
]


@dataclass(frozen=True)
class LegendEntry:
    """
    One legend row.

    Fields:
        key:         Locale node-type key ("project", ..., "link").
        label:       Localized label, or the key when no locale is given.
        value:       Node count for the kind, or the edge count for "link".
        kind:        NodeKind of the row; None for the link row.
        hide_if_zero: Row should be hidden when value is 0.
    """
    key: str
    label: str
    value: int
    kind: NodeKind | None
    hide_if_zero: bool = True

    @property
    def visible(self) -> bool:
        return not (self.hide_if_zero and self.value == 0)


def graph_statistics(
    nodes: list[Node] | GraphModel,
    edges: list[Edge] | None = None,
    locale=None,
) -> list[LegendEntry]:
    """
    Build legend entries for a node/edge view.

    Args:
        nodes:  A GraphModel (its full node and edge set is used) or a list
                of nodes, e.g. from GraphModel.internal_view().
        edges:  Edges of the view; ignored when a GraphModel is given.
        locale: Optional Locale used to label the rows.

    Returns:
        Entries for every node kind followed by the link count. The link
        row is never hidden.
    """
    if isinstance(nodes, GraphModel):
        nodes, edges = nodes.nodes(), nodes.edges()
    edges = edges or []

    def label(key: str) -> str:
        return locale.attribute("node-types", key) if locale is not None else key

    counts = Counter(n.kind for n in nodes)
    entries = [
        LegendEntry(key, label(key), counts.get(kind, 0), kind, hide_if_zero)
        for key, kind, hide_if_zero in LEGEND_ORDER
    ]
    entries.append(LegendEntry("link", label("link"), len(edges), None, False))
    return entries
