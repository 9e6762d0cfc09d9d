"""
collab_graph/tests/test_network.py - Tests for the CollaborationNetwork session.

Tests verify:
- open() fetches intervals and the baseline, then renders the full graph.
- The external filter hides external persons and is refused mid-timelapse.
- Search and legend statistics operate on the session's model.
"""

import asyncio

import pytest

from collab_graph.config import CollabGraphConfig
from collab_graph.network import CollaborationNetwork
from collab_graph.timelapse.scheduler import PlaybackState, TimelapseStateError


# ── Helpers ───────────────────────────────────────────────────────────────────

def open_network(memory_source, renderer, timers, **kwargs):
    return asyncio.run(
        CollaborationNetwork.open(
            source=memory_source,
            renderer=renderer,
            timers=timers,
            **kwargs,
        )
    )


# ── Loading ───────────────────────────────────────────────────────────────────

def test_open_loads_baseline(memory_source, renderer, timers, baseline_records, intervals):
    network = open_network(memory_source, renderer, timers)
    assert network.timelapse.intervals == intervals
    assert network.model.number_of_edges() == len(baseline_records)
    assert len(renderer.last.nodes) == network.model.number_of_nodes()
    assert renderer.last.as_of is None


def test_baseline_handed_to_timelapse(memory_source, renderer, timers, baseline_records):
    network = open_network(memory_source, renderer, timers)
    assert network.timelapse.baseline == baseline_records


# ── External filter ───────────────────────────────────────────────────────────

def test_toggle_external_hides_and_restores(memory_source, renderer, timers):
    network = open_network(memory_source, renderer, timers)
    assert network.toggle_external() is True
    assert "Dave" not in {n.id for n in renderer.last.nodes}
    assert all(e.internal for e in renderer.last.edges)
    assert network.toggle_external() is False
    assert "Dave" in {n.id for n in renderer.last.nodes}


def test_toggle_external_refused_during_timelapse(memory_source, renderer, timers):
    network = open_network(memory_source, renderer, timers)

    async def scenario():
        await network.timelapse.start()
        assert network.timelapse.state == PlaybackState.RUNNING
        with pytest.raises(TimelapseStateError):
            network.toggle_external()
        network.timelapse.stop()
        assert network.toggle_external() is True

    asyncio.run(scenario())


def test_stop_restores_baseline(memory_source, renderer, timers, baseline_records):
    network = open_network(memory_source, renderer, timers)

    async def scenario():
        await network.timelapse.start()
        network.timelapse.stop()

    asyncio.run(scenario())
    assert network.model.number_of_edges() == len(baseline_records)


# ── Statistics ────────────────────────────────────────────────────────────────

def test_statistics_follow_filter(memory_source, renderer, timers, locale):
    network = open_network(memory_source, renderer, timers, locale=locale)
    before = {e.key: e.value for e in network.statistics()}
    network.toggle_external()
    after = {e.key: e.value for e in network.statistics()}
    assert before["external"] == 1
    assert after["external"] == 0
    assert after["link"] == before["link"] - 1


# ── Search ────────────────────────────────────────────────────────────────────

def test_find_project_and_person(memory_source, renderer, timers):
    network = open_network(memory_source, renderer, timers)
    assert asyncio.run(network.find("team")).id == "TEAM"
    assert asyncio.run(network.find("carol")).id == "Carol"
    assert asyncio.run(network.find("")) is None


def test_connector_words_from_locale(memory_source, renderer, timers, locale):
    network = open_network(memory_source, renderer, timers, locale=locale)
    assert network.search.connector_words == frozenset({"van", "de", "der"})


def test_connector_words_from_config(memory_source, renderer, timers):
    config = CollabGraphConfig(lower_names=("von", "zu"))
    network = open_network(memory_source, renderer, timers, config=config)
    assert network.search.connector_words == frozenset({"von", "zu"})


def test_search_title_localized(memory_source, renderer, timers, locale):
    network = open_network(memory_source, renderer, timers, locale=locale)
    assert network.search_title() == "Search for a project or person"


def test_search_title_anonymous(make_source, renderer, timers, intervals, locale):
    source = make_source(intervals, {}, [{"source": "x1", "target": "A", "encryption": 1}])
    network = open_network(source, renderer, timers, locale=locale)
    assert network.search_title() == "Search for a project"
