"""
collab_graph/timelapse/scheduler.py - Timelapse playback over the graph model.

A timelapse replays the collaboration graph interval by interval. Every tick
loads the snapshot of the next interval, merges it into the GraphModel
(incremental mode, stamped with the interval date), expires edges that fell
out of the decay window and hands the result to the renderer.

State machine:

    IDLE --start()--> RUNNING <--toggle_play_pause()--> PAUSED
                         |
                         +--(intervals exhausted)--> COMPLETED

    stop() from any state returns to IDLE and restores the baseline graph.

Ticks are serialized: the synchronous part of a tick (index bookkeeping,
spawning the fetch) runs on the event loop, and snapshot results are applied
strictly in tick order. Every start() and stop() opens a new generation;
results that arrive for an older generation are discarded.
"""

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import pandas as pd

from collab_graph.config import DEFAULT_CONFIG, CollabGraphConfig
from collab_graph.graph.decay import DecayEngine
from collab_graph.graph.model import GraphModel
from collab_graph.ingestion.data_source import DataSource, interval_date
from collab_graph.render import NullRenderer, Renderer
from collab_graph.timelapse.timers import AsyncioTimers, TimerHandle

logger = logging.getLogger(__name__)


class PlaybackState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


class TimelapseStateError(RuntimeError):
    """A playback operation was requested in a state that does not allow it."""


@dataclass
class PlaybackControls:
    """
    Enabled/disabled state of the playback controls, for the UI to mirror.

    Fields:
        play_pause_enabled:      Play/pause button usable.
        play_icon:               "pause" while running, "play" while paused,
                                 "stop" once the timelapse completed.
        faster_enabled:          Speed-up control usable.
        slower_enabled:          Slow-down control usable.
        regular_options_enabled: Non-timelapse options (filters, search).
        date_label:              Localized date of the latest tick.
    """
    play_pause_enabled: bool = True
    play_icon: str = "pause"
    faster_enabled: bool = True
    slower_enabled: bool = True
    regular_options_enabled: bool = True
    date_label: str | None = None


class TimelapseScheduler:
    """
    Tick-driven playback of interval snapshots.

    Args:
        model:     GraphModel owned by the session.
        decay:     DecayEngine bound to the same model.
        source:    DataSource providing per-interval snapshots.
        intervals: Ordered epoch-second interval stamps.
        baseline:  Full-load records restored by stop().
        renderer:  Receives a GraphSnapshot after every applied tick.
        locale:    Optional Locale for the date label.
        config:    CollabGraphConfig (speeds, seed index).
        timers:    Timer factory; AsyncioTimers by default.

    All methods must be called from the event loop thread; tick() and
    start() spawn asyncio tasks.
    """

    def __init__(
        self,
        model: GraphModel,
        decay: DecayEngine,
        source: DataSource,
        intervals: Iterable[int],
        baseline: Iterable[Mapping[str, Any]] = (),
        renderer: Renderer | None = None,
        locale=None,
        config: CollabGraphConfig = DEFAULT_CONFIG,
        timers: AsyncioTimers | None = None,
    ) -> None:
        self.model = model
        self.decay = decay
        self.source = source
        self.intervals = list(intervals)
        self.baseline = list(baseline)
        self.renderer = renderer or NullRenderer()
        self.locale = locale
        self.config = config
        self.timers = timers or AsyncioTimers()

        self.state = PlaybackState.IDLE
        self.index = 0
        self.speed = config.default_speed_ms
        self.controls = PlaybackControls()

        self._timer: TimerHandle | None = None
        self._generation = 0
        self._last_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    # ── State helpers ─────────────────────────────────────────────────────────

    @property
    def active(self) -> bool:
        return self.state != PlaybackState.IDLE

    @property
    def paused(self) -> bool:
        return self.state == PlaybackState.PAUSED

    @property
    def generation(self) -> int:
        return self._generation

    def seed_interval(self) -> int | None:
        """Interval at config.seed_interval_index, falling back to the first."""
        if not self.intervals:
            return None
        if len(self.intervals) > self.config.seed_interval_index:
            return self.intervals[self.config.seed_interval_index]
        return self.intervals[0]

    def _make_timer(self) -> None:
        self._cancel_timer()
        self._timer = self.timers.call_every(self.speed, self.tick)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _format_date(self, date: pd.Timestamp) -> str:
        if self.locale is not None:
            return self.locale.format_month(date)
        return date.strftime("%B %Y")

    def _render(self, as_of=None, label=None, show_titles=True) -> None:
        self.renderer.update(self.model.snapshot(as_of, label, show_titles=show_titles))

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Timelapse snapshot load failed: %s", exc)

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def toggle(self) -> None:
        """Stop an active timelapse, otherwise start one from the beginning."""
        if self.active:
            self.stop()
        else:
            self.start()

    def start(self) -> asyncio.Task | None:
        """
        Start playback from the first interval.

        Clears the model, resets index and speed, starts the periodic timer
        and performs the first tick immediately.

        Returns:
            The task of the first tick.

        Raises:
            TimelapseStateError: not idle, or no intervals to play.
        """
        if self.state != PlaybackState.IDLE:
            raise TimelapseStateError(f"Cannot start a timelapse while {self.state.value}.")
        if not self.intervals:
            raise TimelapseStateError("Cannot start a timelapse without intervals.")

        self._generation += 1
        self.model.reset()
        self.index = 0
        self.speed = self.config.default_speed_ms
        self.state = PlaybackState.RUNNING
        self.controls = PlaybackControls(regular_options_enabled=False)
        self._last_task = None
        self._render()

        seed = self.seed_interval()
        if self.config.seed_on_start:
            self._last_task = self._spawn(self._load_seed(self._generation, seed))

        logger.info(
            "Timelapse started: %d intervals, seed interval %s, %d ms per tick.",
            len(self.intervals),
            seed,
            self.speed,
        )
        self._make_timer()
        return self.tick()

    def stop(self) -> None:
        """
        Stop playback and restore the baseline graph.

        Cancels the timer, invalidates outstanding tick results, rebuilds the
        model from the baseline records (full load) and re-enables the
        regular controls.
        """
        self._cancel_timer()
        self._generation += 1
        self._last_task = None
        previous = self.state
        self.state = PlaybackState.IDLE
        self.controls = PlaybackControls()

        self.model.add_or_update(self.baseline)
        self._render(show_titles=False)
        logger.info("Timelapse stopped (was %s) at interval %d.", previous.value, self.index)

    # ── Ticking ───────────────────────────────────────────────────────────────

    def tick(self) -> asyncio.Task | None:
        """
        Advance playback by one interval.

        Paused: the timer is halted and nothing advances. Intervals left:
        the next snapshot is fetched asynchronously and index moves on.
        Intervals exhausted: the timelapse completes.

        Returns:
            Task applying the snapshot, or None when nothing was loaded.
        """
        if self.state == PlaybackState.PAUSED:
            self._cancel_timer()
            return None
        if self.state != PlaybackState.RUNNING:
            return None

        if self.index < len(self.intervals):
            interval = self.intervals[self.index]
            date = interval_date(interval)
            label = self._format_date(date)
            self.controls.date_label = label

            task = self._spawn(
                self._load_tick(self._generation, interval, date, label, self._last_task)
            )
            self._last_task = task
            self.index += 1
            return task

        self.state = PlaybackState.COMPLETED
        self._cancel_timer()
        self.controls.play_pause_enabled = False
        self.controls.play_icon = "stop"
        logger.info("Timelapse completed after %d intervals.", len(self.intervals))
        return None

    async def _load_tick(
        self,
        generation: int,
        interval: int,
        date: pd.Timestamp,
        label: str,
        previous: asyncio.Task | None,
    ) -> bool:
        records = await self.source.fetch_interval(interval)
        if previous is not None:
            await asyncio.wait([previous])

        if generation != self._generation:
            logger.debug("Discarding snapshot %s from superseded timelapse.", interval)
            return False

        self.model.add_or_update(records, date)
        self.decay.prune_older_than(date)
        self._render(as_of=date, label=label)
        return True

    async def _load_seed(self, generation: int, interval: int) -> bool:
        records = await self.source.fetch_interval(interval)
        if generation != self._generation:
            return False
        self.model.add_or_update(records, interval_date(interval))
        return True

    async def wait_idle(self) -> None:
        """Wait until every outstanding snapshot load has finished."""
        while self._tasks:
            await asyncio.wait(list(self._tasks))

    # ── Play / pause / speed ──────────────────────────────────────────────────

    def toggle_play_pause(self) -> None:
        """
        Pause a running timelapse or resume a paused one.

        Resuming ticks immediately and then restarts the timer. Idle and
        completed timelapses are left alone.
        """
        if self.state == PlaybackState.PAUSED:
            self.state = PlaybackState.RUNNING
            self.controls.play_icon = "pause"
            self.tick()
            if self.state == PlaybackState.RUNNING:
                self._make_timer()
            logger.debug("Timelapse resumed at interval %d.", self.index)
        elif self.state == PlaybackState.RUNNING:
            self.state = PlaybackState.PAUSED
            self._cancel_timer()
            self.controls.play_icon = "play"
            logger.debug("Timelapse paused at interval %d.", self.index)

    def increase_speed(self) -> bool:
        """Shorten the tick period by one step; returns False at the fastest speed."""
        if self.speed > self.config.fastest_speed_ms:
            self.speed = max(self.speed - self.config.speed_step_ms, self.config.fastest_speed_ms)
            if self.speed < self.config.slowest_speed_ms:
                self.controls.slower_enabled = True
            self._restart_timer()
            return True
        self.controls.faster_enabled = False
        return False

    def decrease_speed(self) -> bool:
        """Lengthen the tick period by one step; returns False at the slowest speed."""
        if self.speed < self.config.slowest_speed_ms:
            self.speed = min(self.speed + self.config.speed_step_ms, self.config.slowest_speed_ms)
            if self.speed > self.config.fastest_speed_ms:
                self.controls.faster_enabled = True
            self._restart_timer()
            return True
        self.controls.slower_enabled = False
        return False

    def _restart_timer(self) -> None:
        if self.state == PlaybackState.RUNNING:
            self._make_timer()
        logger.debug("Timelapse speed set to %d ms per tick.", self.speed)
