"""
collab_graph/graph/model.py - Canonical node/edge store for the collaboration graph.

The model owns a NetworkX Graph whose nodes are projects and persons (one
shared ID namespace) and whose edges are the *active set*: the collaboration
records currently considered live for rendering and decay.

Node attributes:
    kind       : NodeKind, computed once at creation and never recomputed
    encryption : encryption level of the node ID (0 = plaintext)

Edge attributes:
    record     : the Edge object (person -> project, counts, activity stamp)

Two merge modes:
    Full load   - the graph is rebuilt from one snapshot.
    Incremental - a dated snapshot is merged into the existing graph during a
                  timelapse; new persons bring all of their edges, known
                  persons only bring edges to projects they are not yet
                  linked to, and every active edge of a known person is
                  touched with the snapshot date.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import networkx as nx
import pandas as pd

from collab_graph.graph.records import Edge, edges_from_records

logger = logging.getLogger(__name__)


class NodeKind(IntEnum):
    """Node classification. Values double as renderer colour indices."""

    SUPPORT_PROJECT = 0
    PROJECT = 1
    OTHER = 2
    EXTERNAL = 3
    DEVELOPER = 4
    SUPPORT_MEMBER = 5

    @property
    def is_project(self) -> bool:
        return self in PROJECT_KINDS


PROJECT_KINDS = frozenset({NodeKind.SUPPORT_PROJECT, NodeKind.PROJECT})
PERSON_KINDS = frozenset(
    {NodeKind.OTHER, NodeKind.EXTERNAL, NodeKind.DEVELOPER, NodeKind.SUPPORT_MEMBER}
)

# Aggregate thresholds for person classification.
SUPPORT_ISSUE_THRESHOLD = 30
DEVELOPER_COMMIT_THRESHOLD = 30


@dataclass(frozen=True)
class Node:
    """Read-only view of a graph node handed to search and rendering."""
    id: str
    kind: NodeKind
    encryption: int = 0

    @property
    def is_project(self) -> bool:
        return self.kind.is_project


@dataclass
class GraphSnapshot:
    """
    What the renderer draws after a load, tick or filter change.

    Fields:
        nodes:       Node views (frozen; identity and kind are read-only).
        edges:       Active edges.
        as_of:       Timelapse date of the snapshot; None outside a timelapse.
        label:       Localized date label ("March 2019"); None outside a timelapse.
        show_titles: Whether project labels should be drawn.
    """
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    as_of: pd.Timestamp | None = None
    label: str | None = None
    show_titles: bool = False


def classify_person(edges: list[Edge]) -> NodeKind:
    """
    Classify a person from all of their edges in one snapshot.

    Rules, in order:
        1. First edge not internal                 -> EXTERNAL
        2. Any support edge with > 30 issues       -> SUPPORT_MEMBER
        3. More than 30 commits over all projects  -> DEVELOPER
        4. Otherwise                               -> OTHER
    """
    if not edges:
        return NodeKind.OTHER
    if not edges[0].internal:
        return NodeKind.EXTERNAL
    if any(e.support and e.num_issues > SUPPORT_ISSUE_THRESHOLD for e in edges):
        return NodeKind.SUPPORT_MEMBER
    if sum(e.num_commits for e in edges) > DEVELOPER_COMMIT_THRESHOLD:
        return NodeKind.DEVELOPER
    return NodeKind.OTHER


def classify_project(edges: list[Edge]) -> NodeKind:
    """A project is a support project when its first edge is a support edge."""
    if edges and edges[0].support:
        return NodeKind.SUPPORT_PROJECT
    return NodeKind.PROJECT


def _group_by(edges: list[Edge], key: str) -> dict[str, list[Edge]]:
    groups: dict[str, list[Edge]] = {}
    for edge in edges:
        groups.setdefault(getattr(edge, key), []).append(edge)
    return groups


class GraphModel:
    """
    Canonical store of classified nodes and active edges for one session.

    Not thread-safe: all mutation happens on the session's event loop, from
    full loads or from the timelapse's serialized tick path.
    """

    def __init__(self) -> None:
        self.graph = nx.Graph()

    # ── Merge ─────────────────────────────────────────────────────────────────

    def add_or_update(
        self,
        records: Iterable[Mapping[str, Any] | Edge],
        as_of: pd.Timestamp | None = None,
    ) -> None:
        """
        Merge a snapshot of edge records into the model.

        Args:
            records: Raw snapshot records (or Edge objects). Records missing
                     a source or target are skipped.
            as_of:   Snapshot date. Omitted -> full load: the graph is
                     rebuilt and the active set becomes every input edge.
                     Given -> incremental timelapse merge stamped with as_of.

        Notes:
            - Project nodes are created before person nodes so that every
              edge added references two existing nodes.
            - Classification uses the person's/project's edges within this
              snapshot only, at creation time.
            - Re-applying the same snapshot with the same date leaves node
              and edge counts unchanged.
            - A known person's *existing* active edges are all touched with
              as_of, including edges to projects absent from this snapshot.
              This extends the life of unrelated edges and is kept as-is.
        """
        edges = edges_from_records(records)
        incremental = as_of is not None

        if not incremental:
            self.graph.clear()

        projects = _group_by(edges, "project_id")
        people = _group_by(edges, "person_id")

        projects_added = 0
        for project, project_edges in projects.items():
            if incremental and project in self.graph:
                continue
            self.graph.add_node(
                project, kind=classify_project(project_edges), encryption=0
            )
            projects_added += 1

        people_added = 0
        edges_added = 0
        for person, person_edges in people.items():
            if not incremental or person not in self.graph:
                self.graph.add_node(
                    person,
                    kind=classify_person(person_edges),
                    encryption=person_edges[0].encryption,
                )
                people_added += 1
                for edge in person_edges:
                    edge.last_active_at = as_of
                    if self._link(edge):
                        edges_added += 1
                continue

            current_projects = {e.project_id for e in self.person_edges(person)}
            for edge in person_edges:
                if edge.project_id not in current_projects:
                    edge.last_active_at = as_of
                    if self._link(edge):
                        edges_added += 1
                        current_projects.add(edge.project_id)

            for edge in self.person_edges(person):
                edge.last_active_at = as_of

        logger.info(
            "Merged snapshot (%s): +%d projects, +%d persons, +%d edges "
            "(%d nodes, %d edges).",
            as_of.date() if incremental else "full load",
            projects_added,
            people_added,
            edges_added,
            self.graph.number_of_nodes(),
            self.graph.number_of_edges(),
        )

    def _link(self, edge: Edge) -> bool:
        """Add an edge to the active set; the first record for a pair wins."""
        if self.graph.has_edge(edge.person_id, edge.project_id):
            return False
        self.graph.add_edge(edge.person_id, edge.project_id, record=edge)
        return True

    def reset(self) -> None:
        """Drop every node and edge."""
        self.graph.clear()
        logger.debug("Graph model reset to empty.")

    # ── Removal (decay engine) ────────────────────────────────────────────────

    def remove_edge(self, edge: Edge) -> None:
        self.graph.remove_edge(edge.person_id, edge.project_id)

    def remove_node(self, node_id: str) -> None:
        self.graph.remove_node(node_id)

    # ── Queries ───────────────────────────────────────────────────────────────

    def has_node(self, node_id: str) -> bool:
        return node_id in self.graph

    def has_active_edges(self, node_id: str) -> bool:
        """True when any active edge references node_id as source or target."""
        return node_id in self.graph and self.graph.degree(node_id) > 0

    def node(self, node_id: str) -> Node:
        data = self.graph.nodes[node_id]
        return Node(id=node_id, kind=data["kind"], encryption=data["encryption"])

    def nodes(self) -> list[Node]:
        return [
            Node(id=n, kind=d["kind"], encryption=d["encryption"])
            for n, d in self.graph.nodes(data=True)
        ]

    def edges(self) -> list[Edge]:
        return [d["record"] for _, _, d in self.graph.edges(data=True)]

    def person_edges(self, person: str) -> list[Edge]:
        """Active edges whose person endpoint is ``person``."""
        if person not in self.graph:
            return []
        return [
            d["record"]
            for _, _, d in self.graph.edges(person, data=True)
            if d["record"].person_id == person
        ]

    def number_of_nodes(self) -> int:
        return self.graph.number_of_nodes()

    def number_of_edges(self) -> int:
        return self.graph.number_of_edges()

    @property
    def all_encrypted(self) -> bool:
        """True when every person node carries an encrypted ID."""
        return all(
            d["encryption"] > 0
            for _, d in self.graph.nodes(data=True)
            if d["kind"] in PERSON_KINDS
        )

    def internal_view(self) -> tuple[list[Node], list[Edge]]:
        """
        Nodes and edges with external persons filtered out.

        External person nodes are hidden and only internal edges are kept.
        Project nodes stay visible even when all their edges are external.
        """
        nodes = [n for n in self.nodes() if n.kind != NodeKind.EXTERNAL]
        edges = [e for e in self.edges() if e.internal]
        return nodes, edges

    def snapshot(
        self,
        as_of: pd.Timestamp | None = None,
        label: str | None = None,
        show_titles: bool = False,
        hide_external: bool = False,
    ) -> GraphSnapshot:
        """Current nodes and active edges for the renderer, optionally without external persons."""
        if hide_external:
            nodes, edges = self.internal_view()
        else:
            nodes, edges = self.nodes(), self.edges()
        return GraphSnapshot(
            nodes=nodes,
            edges=edges,
            as_of=as_of,
            label=label,
            show_titles=show_titles,
        )
