"""
collab_graph.graph - NetworkX graph state engine.

Modules:
    records    - Raw snapshot records to Edge objects; endpoint-id accessor.
    model      - GraphModel: classified nodes, active edges, full/incremental merge.
    decay      - DecayEngine: expire edges older than the rolling window.
    statistics - Legend counts per node kind.

The graph is an undirected NetworkX Graph with one shared ID namespace:
    Node kinds : SupportProject, Project, Other, External, Developer, SupportMember
    Edges      : person -> project collaboration records (attribute 'record')
"""
