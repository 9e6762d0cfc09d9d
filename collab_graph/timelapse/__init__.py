"""
collab_graph.timelapse - Interval-by-interval replay of the collaboration graph.

Modules:
    timers    - Cancellable one-shot and periodic timers on the asyncio loop.
    scheduler - TimelapseScheduler: playback state machine, speed control.
"""
