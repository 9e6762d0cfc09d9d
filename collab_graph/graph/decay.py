"""
collab_graph/graph/decay.py - Rolling-window expiry of edges and orphaned nodes.

During a timelapse every active edge carries the date of the last snapshot in
which its person was seen. Edges not refreshed for ``config.decay_months``
calendar months are expired, and any endpoint left without an active edge is
removed with them. This keeps the replayed graph a picture of recent
collaboration rather than an ever-growing union of all snapshots.
"""

import logging
from dataclasses import dataclass, field

import pandas as pd

from collab_graph.config import DEFAULT_CONFIG, CollabGraphConfig
from collab_graph.graph.model import GraphModel
from collab_graph.graph.records import Edge, endpoint_id

logger = logging.getLogger(__name__)


@dataclass
class PruneResult:
    """Outcome of one decay pass, kept for logging and inspection."""
    threshold: pd.Timestamp
    removed_edges: list[Edge] = field(default_factory=list)
    removed_nodes: list[str] = field(default_factory=list)


class DecayEngine:
    """Expires stale edges of a GraphModel on a calendar-month window."""

    def __init__(self, model: GraphModel, config: CollabGraphConfig = DEFAULT_CONFIG) -> None:
        self.model = model
        self.config = config

    def threshold_for(self, reference_date: pd.Timestamp) -> pd.Timestamp:
        """
        Reference date minus ``decay_months`` calendar months.

        Month arithmetic clamps to the end of shorter months, so 31 May minus
        three months is 28/29 February.
        """
        return pd.Timestamp(reference_date) - pd.DateOffset(months=self.config.decay_months)

    def prune_older_than(self, reference_date: pd.Timestamp) -> PruneResult:
        """
        Remove edges last active on or before the decay threshold.

        Algorithm:
            1. threshold = reference_date - decay_months calendar months.
            2. Take a stable copy of the active edge list.
            3. Remove every edge with last_active_at <= threshold. Edges
               without an activity stamp (full load) never expire.
            4. For both endpoints of a removed edge, remove the node when no
               active edge references it any more.

        Returns:
            PruneResult with the threshold and everything removed.

        Notes:
            - Edge and node counts never increase.
            - A node is only removed after its last edge is gone, so no
              dangling edge can remain.
        """
        result = PruneResult(threshold=self.threshold_for(reference_date))

        for edge in list(self.model.edges()):
            if edge.last_active_at is None or edge.last_active_at > result.threshold:
                continue

            self.model.remove_edge(edge)
            result.removed_edges.append(edge)

            for node_id in (endpoint_id(edge.source), endpoint_id(edge.target)):
                if node_id in result.removed_nodes or not self.model.has_node(node_id):
                    continue
                if not self.model.has_active_edges(node_id):
                    self.model.remove_node(node_id)
                    result.removed_nodes.append(node_id)

        logger.info(
            "Decay pass (threshold %s): %d edges expired, %d orphaned nodes removed.",
            result.threshold.date(),
            len(result.removed_edges),
            len(result.removed_nodes),
        )
        return result
