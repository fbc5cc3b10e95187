"""Data source lifecycle shared by every producer.

A data source polls once on start, then on a fixed interval, and reports the
complete set of entries it currently wants visible. It never reports deltas.
"""

from __future__ import annotations

import inspect
import logging
import threading
from typing import Awaitable, Callable, Iterable, Optional, Union

from core.models import NotificationEntry
from core.ports import EmitCallback, ScheduledTask, SchedulerPort
from core.scheduler import CancellationToken

LOGGER = logging.getLogger(__name__)

EntriesProvider = Callable[[], Union[Iterable[NotificationEntry], Awaitable[Iterable[NotificationEntry]]]]


class OnceGuard:
    """Atomic check-and-set flag owned by the component that needs it.

    The flag is set in the same step as the check, before any await, so two
    overlapping polls cannot both pass it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._acquired = False

    @property
    def acquired(self) -> bool:
        return self._acquired

    def try_acquire(self) -> bool:
        with self._lock:
            if self._acquired:
                return False
            self._acquired = True
            return True

    def reset(self) -> None:
        with self._lock:
            self._acquired = False


class PollingDataSource:
    """Base class handling start/stop, scheduling and the poll boundary."""

    def __init__(self, source: str, poll_interval_seconds: float, scheduler: SchedulerPort) -> None:
        if poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        self.source = source
        self.poll_interval_seconds = poll_interval_seconds
        self._scheduler = scheduler
        self._task: Optional[ScheduledTask] = None
        self._callback: Optional[EmitCallback] = None
        self._token: Optional[CancellationToken] = None

    @property
    def running(self) -> bool:
        return self._task is not None

    def start(self, on_emit: EmitCallback) -> None:
        """Poll now and keep polling. A second call while running is a no-op."""

        if self._task is not None:
            return
        self._callback = on_emit
        self._token = CancellationToken()
        token = self._token
        LOGGER.debug("Starting data source %s every %ss", self.source, self.poll_interval_seconds)
        self._task = self._scheduler.schedule_repeating(
            self.poll_interval_seconds,
            lambda: self._poll_and_emit(token),
        )

    def stop(self) -> None:
        """Stop polling. Polls already in flight finish without emitting."""

        if self._task is not None:
            self._task.cancel()
            self._task = None
        if self._token is not None:
            self._token.cancel()
            self._token = None
        self._callback = None

    async def _poll_and_emit(self, token: CancellationToken) -> None:
        if token.cancelled or self._callback is None:
            return
        try:
            entries = list(await self.poll())
            # stop() may have run while poll() was suspended.
            callback = self._callback
            if token.cancelled or callback is None:
                return
            callback([entry.with_source(self.source) for entry in entries], self.source)
        except Exception:
            LOGGER.exception("Poll failed for data source %s", self.source)

    async def poll(self) -> list[NotificationEntry]:
        raise NotImplementedError

    def on_acknowledged(self, notification_id: str) -> None:
        """Called by the service after an entry has been acknowledged."""


class IntervalDataSource(PollingDataSource):
    """Generic producer wrapping a sync or async ``get_notifications`` callable."""

    def __init__(
        self,
        source: str,
        poll_interval_seconds: float,
        scheduler: SchedulerPort,
        get_notifications: EntriesProvider,
    ) -> None:
        super().__init__(source, poll_interval_seconds, scheduler)
        self._get_notifications = get_notifications

    async def poll(self) -> list[NotificationEntry]:
        result = self._get_notifications()
        if inspect.isawaitable(result):
            result = await result
        return list(result)
