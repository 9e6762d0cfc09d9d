"""
collab_graph/tests/conftest.py - Shared pytest fixtures for the collab_graph test suite.

Fixtures:
    baseline_records - Small full-load snapshot (3 projects, 5 persons).
    interval_records - Per-interval snapshots keyed by epoch-second stamp.
    intervals        - Ordered interval stamps (monthly, 2019).
    memory_source    - In-memory DataSource over the records above.
    renderer         - RecordingRenderer capturing every GraphSnapshot.
    timers           - ManualTimers virtual clock.
    locale           - English/Dutch Locale resource.

All async code is driven with asyncio.run() inside plain test functions.
"""

import asyncio

import pandas as pd
import pytest

from collab_graph.ingestion.data_source import DataSourceError
from collab_graph.locales import Locale
from collab_graph.timelapse.timers import TimerHandle


# ── Test doubles ──────────────────────────────────────────────────────────────

class MemorySource:
    """DataSource stand-in serving records from dicts, with optional fetch gates."""

    def __init__(self, intervals, snapshots, baseline):
        self.intervals = list(intervals)
        self.snapshots = dict(snapshots)
        self.baseline = list(baseline)
        self.fetched: list[int] = []
        self.gates: dict[int, asyncio.Event] = {}

    def hold(self, interval: int) -> asyncio.Event:
        """Make fetches of ``interval`` wait until the returned event is set."""
        gate = asyncio.Event()
        self.gates[interval] = gate
        return gate

    async def fetch_intervals(self):
        return list(self.intervals)

    async def fetch_baseline(self):
        return [dict(r) for r in self.baseline]

    async def fetch_interval(self, interval):
        self.fetched.append(interval)
        gate = self.gates.get(interval)
        if gate is not None:
            await gate.wait()
        if interval not in self.snapshots:
            raise DataSourceError(f"No snapshot for interval {interval}")
        return [dict(r) for r in self.snapshots[interval]]


class RecordingRenderer:
    def __init__(self):
        self.snapshots = []

    def update(self, snapshot):
        self.snapshots.append(snapshot)

    @property
    def last(self):
        return self.snapshots[-1]


class _ManualHandle(TimerHandle):
    def __init__(self, due, callback, period=None):
        super().__init__()
        self.due = due
        self.callback = callback
        self.period = period

    @property
    def active(self):
        return not self.cancelled


class ManualTimers:
    """Virtual clock: timers only fire when the test calls advance()."""

    def __init__(self):
        self.now = 0.0
        self.handles: list[_ManualHandle] = []

    def call_later(self, delay_ms, callback):
        handle = _ManualHandle(self.now + delay_ms, callback)
        self.handles.append(handle)
        return handle

    def call_every(self, period_ms, callback):
        handle = _ManualHandle(self.now + period_ms, callback, period=period_ms)
        self.handles.append(handle)
        return handle

    @property
    def active(self):
        return [h for h in self.handles if not h.cancelled]

    def advance(self, ms):
        """Move the clock forward, firing due timers in due order."""
        target = self.now + ms
        while True:
            due = [h for h in self.active if h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.due)
            self.now = handle.due
            if handle.period is None:
                handle.cancelled = True
            else:
                handle.due += handle.period
            handle.callback()
        self.now = target


# ── Record helpers ────────────────────────────────────────────────────────────

def record(source, target, commits=0, issues=0, internal=True, support=False, encryption=0):
    return {
        "source": source,
        "target": target,
        "num_commits": commits,
        "num_issues": issues,
        "internal": internal,
        "support": support,
        "encryption": encryption,
    }


def epoch(date: str) -> int:
    return int(pd.Timestamp(date, tz="UTC").timestamp())


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def baseline_records():
    return [
        record("Alice", "GROS", commits=10),
        record("Alice", "TEAM", commits=25),
        record("Bob", "GROS", commits=5),
        record("Carol", "SUPPORT", issues=40, support=True),
        record("Dave", "TEAM", commits=100, internal=False),
        record("x8f2e", "GROS", commits=3, encryption=1),
    ]


@pytest.fixture
def intervals():
    return [epoch(f"2019-{month:02d}-01") for month in range(1, 7)]


@pytest.fixture
def interval_records(intervals):
    jan, feb, mar, apr, may, jun = intervals
    return {
        jan: [record("Alice", "GROS", commits=10), record("Bob", "GROS", commits=5)],
        feb: [record("Bob", "TEAM", commits=2)],
        mar: [record("Carol", "SUPPORT", issues=40, support=True)],
        apr: [record("Carol", "SUPPORT", issues=41, support=True)],
        may: [record("Carol", "SUPPORT", issues=42, support=True)],
        jun: [record("Dave", "TEAM", commits=50, internal=False)],
    }


@pytest.fixture
def memory_source(intervals, interval_records, baseline_records):
    return MemorySource(intervals, interval_records, baseline_records)


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def timers():
    return ManualTimers()


@pytest.fixture
def locale():
    return Locale(
        {
            "en": {
                "messages": {
                    "search-title": "Search for a project or person",
                    "search-title-anonymous": "Search for a project",
                },
                "node-types": {"project": "Project", "link": "Collaboration"},
                "connector_words": ["van", "de", "der"],
            },
            "nl": {
                "messages": {"search-title": "Zoek een project of persoon"},
                "connector_words": ["van", "de", "der", "den"],
                "months": [
                    "januari", "februari", "maart", "april", "mei", "juni", "juli",
                    "augustus", "september", "oktober", "november", "december",
                ],
            },
        }
    )


@pytest.fixture
def make_source():
    """Factory for MemorySource instances with custom intervals and snapshots."""
    return MemorySource
