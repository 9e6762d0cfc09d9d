"""
collab_graph/network.py - One interactive collaboration graph session.

CollaborationNetwork owns the GraphModel and wires it to everything that
reads or drives it:

    DataSource ──baseline──> GraphModel <──ticks── TimelapseScheduler
                                 │                        │
                                 ├── DecayEngine <────────┘
                                 ├── SearchResolver
                                 └── Renderer (GraphSnapshot)

Usage:
    network = await CollaborationNetwork.open(config=load_config())
    node = await network.find("jan van dijk")
    network.timelapse.start()

Nothing here is process-wide: every session builds its own model.
"""

import logging

from collab_graph.config import DEFAULT_CONFIG, CollabGraphConfig
from collab_graph.graph.decay import DecayEngine
from collab_graph.graph.model import GraphModel, GraphSnapshot, Node
from collab_graph.graph.statistics import LegendEntry, graph_statistics
from collab_graph.ingestion.data_source import DataSource
from collab_graph.locales import Locale
from collab_graph.render import NullRenderer, Renderer
from collab_graph.search.lookup_client import EncryptionLookupClient
from collab_graph.search.resolver import SearchResolver
from collab_graph.timelapse.scheduler import TimelapseScheduler, TimelapseStateError
from collab_graph.timelapse.timers import AsyncioTimers

logger = logging.getLogger(__name__)


class CollaborationNetwork:
    """
    Session owner for the collaboration graph.

    Args:
        intervals: Timelapse interval stamps (from the interval resource).
        source:    DataSource for baseline and interval snapshots.
        renderer:  External renderer; a logging NullRenderer by default.
        locale:    Locale for labels, date formatting and connector words.
        config:    CollabGraphConfig.
        timers:    Timer factory shared by timelapse and search.
        lookup:    Encryption lookup client override (tests).
    """

    def __init__(
        self,
        intervals: list[int],
        source: DataSource | None = None,
        renderer: Renderer | None = None,
        locale: Locale | None = None,
        config: CollabGraphConfig = DEFAULT_CONFIG,
        timers: AsyncioTimers | None = None,
        lookup: EncryptionLookupClient | None = None,
    ) -> None:
        self.config = config
        self.source = source or DataSource(config)
        self.renderer = renderer or NullRenderer()
        self.locale = locale
        self.timers = timers or AsyncioTimers()

        self.model = GraphModel()
        self.decay = DecayEngine(self.model, config)
        self.baseline: list[dict] = []
        self.hide_external = False

        connectors = (
            locale.connector_words(config.lower_names)
            if locale is not None
            else frozenset(config.lower_names)
        )
        self.search = SearchResolver(
            self.model,
            connector_words=connectors,
            config=config,
            lookup=lookup,
            timers=self.timers,
        )
        self.timelapse = TimelapseScheduler(
            self.model,
            self.decay,
            self.source,
            intervals,
            renderer=self.renderer,
            locale=locale,
            config=config,
            timers=self.timers,
        )

    @classmethod
    async def open(
        cls,
        config: CollabGraphConfig = DEFAULT_CONFIG,
        source: DataSource | None = None,
        **kwargs,
    ) -> "CollaborationNetwork":
        """Fetch the interval list, build a session and load the baseline graph."""
        source = source or DataSource(config)
        intervals = await source.fetch_intervals()
        network = cls(intervals, source=source, config=config, **kwargs)
        await network.create()
        return network

    async def create(self) -> None:
        """Load the baseline snapshot and render the full graph."""
        self.baseline = await self.source.fetch_baseline()
        self.timelapse.baseline = self.baseline
        self.model.add_or_update(self.baseline)
        logger.info(
            "Collaboration graph loaded: %d nodes, %d edges.",
            self.model.number_of_nodes(),
            self.model.number_of_edges(),
        )
        self.refresh()

    # ── Views ─────────────────────────────────────────────────────────────────

    def view(self) -> GraphSnapshot:
        """Current graph as drawn outside a timelapse, honouring the external filter."""
        return self.model.snapshot(hide_external=self.hide_external)

    def refresh(self) -> None:
        self.renderer.update(self.view())

    def statistics(self) -> list[LegendEntry]:
        snapshot = self.view()
        return graph_statistics(snapshot.nodes, snapshot.edges, locale=self.locale)

    def toggle_external(self) -> bool:
        """
        Show or hide external persons and their edges.

        Returns:
            True when external persons are now hidden.

        Raises:
            TimelapseStateError: the filter is a regular option and is
                                 unavailable during a timelapse.
        """
        if self.timelapse.active:
            raise TimelapseStateError("External filter is unavailable during a timelapse.")
        self.hide_external = not self.hide_external
        self.refresh()
        return self.hide_external

    # ── Search ────────────────────────────────────────────────────────────────

    async def find(self, query: str) -> Node | None:
        """Resolve a typed name; see SearchResolver.resolve()."""
        return await self.search.resolve(query)

    def search_title(self) -> str:
        key = self.search.search_title_key()
        return self.locale.message(key) if self.locale is not None else key
