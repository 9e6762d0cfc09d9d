"""
collab_graph.ingestion - Loading interval and snapshot resources.

Modules:
    data_source - DataSource: intervals, baseline and per-interval snapshots
                  from a local directory or an HTTP base URL.
"""
