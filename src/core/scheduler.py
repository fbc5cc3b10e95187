"""Repeating poll scheduling on the asyncio event loop.

Every tick spawns its own task, so a slow poll never delays the next tick.
Two ticks of the same source can therefore overlap; sources that care use a
guard of their own.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

LOGGER = logging.getLogger(__name__)


class CancellationToken:
    """One-way flag checked by a poll before it emits."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class AsyncioScheduledTask:
    """Handle for a repeating callback registered with AsyncioScheduler."""

    def __init__(
        self,
        scheduler: "AsyncioScheduler",
        interval_seconds: float,
        callback: Callable[[], Awaitable[object]],
    ) -> None:
        self._scheduler = scheduler
        self._interval = interval_seconds
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._scheduler.spawn(self._callback())
        self._handle = self._scheduler.loop.call_later(self._interval, self._fire)

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioScheduler:
    """Single-threaded cooperative scheduler backed by ``loop.call_later``."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop
        self._in_flight: set[asyncio.Task] = set()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule_repeating(
        self,
        interval_seconds: float,
        callback: Callable[[], Awaitable[object]],
    ) -> AsyncioScheduledTask:
        """Run ``callback`` immediately, then every ``interval_seconds``."""

        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        task = AsyncioScheduledTask(self, interval_seconds, callback)
        task._fire()
        return task

    def spawn(self, coro: Awaitable[object]) -> asyncio.Task:
        task = self.loop.create_task(coro)
        # The loop only keeps weak references to tasks.
        self._in_flight.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            LOGGER.error("Scheduled callback raised", exc_info=error)

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def drain(self) -> None:
        """Wait for every tick that is currently running."""

        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)
