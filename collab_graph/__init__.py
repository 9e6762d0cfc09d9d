"""
collab_graph - Graph state engine for a people <-> projects collaboration network.

Builds classified nodes and edges from snapshot records, replays the network's
evolution interval by interval with a rolling decay window, and resolves typed
names (optionally encrypted) to nodes. Layout and drawing are left to an
external renderer.

Subpackages:
- collab_graph.graph: GraphModel, DecayEngine, record ingestion, legend statistics
- collab_graph.timelapse: TimelapseScheduler and cancellable timers
- collab_graph.search: SearchResolver and the encryption lookup client
- collab_graph.ingestion: DataSource for interval and snapshot resources
"""

__version__ = "0.1.0"
