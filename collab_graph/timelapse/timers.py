"""
collab_graph/timelapse/timers.py - Cancellable timers on the asyncio event loop.

Playback ticks and search debouncing are both driven by timers that must be
disposable at any moment (pause, stop, superseded search). Each timer is a
TimerHandle; cancelling it guarantees its callback will not run again.

Components take a ``timers`` object with two methods, call_later() and
call_every(), so tests can substitute a virtual clock.
"""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class TimerHandle:
    """Disposal handle for a one-shot or periodic timer."""

    def __init__(self) -> None:
        self._handle: asyncio.TimerHandle | None = None
        self.cancelled = False

    @property
    def active(self) -> bool:
        return not self.cancelled and self._handle is not None

    def cancel(self) -> None:
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioTimers:
    """Timer factory backed by ``loop.call_later``. Delays are in milliseconds."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay_ms``."""
        handle = TimerHandle()

        def fire() -> None:
            handle._handle = None
            if not handle.cancelled:
                handle.cancelled = True
                callback()

        handle._handle = self.loop.call_later(delay_ms / 1000.0, fire)
        return handle

    def call_every(self, period_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` every ``period_ms``; the first call is one period away."""
        handle = TimerHandle()
        loop = self.loop

        def fire() -> None:
            if handle.cancelled:
                return
            handle._handle = loop.call_later(period_ms / 1000.0, fire)
            callback()

        handle._handle = loop.call_later(period_ms / 1000.0, fire)
        return handle
