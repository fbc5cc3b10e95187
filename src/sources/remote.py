"""Remote notification service data source.

Pages through the service on every poll and emits the full set it returned.
A failed page fails the whole poll, so the previous set stays untouched.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from core.data_source import PollingDataSource
from core.ids import is_local_only
from core.models import NotificationEntry
from core.ports import NotificationsApiPort, SchedulerPort

LOGGER = logging.getLogger(__name__)

SOURCE = "remote_notifications"
DEFAULT_POLL_INTERVAL_SECONDS = 120.0
DEFAULT_MAX_PAGES = 10


class RemoteNotificationsDataSource(PollingDataSource):
    """Polls ``NotificationsApiPort.get_notifications`` on an interval."""

    def __init__(
        self,
        api: NotificationsApiPort,
        scheduler: SchedulerPort,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_pages: int = DEFAULT_MAX_PAGES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(SOURCE, poll_interval_seconds, scheduler)
        if max_pages <= 0:
            raise ValueError("max_pages must be positive")
        self._api = api
        self._max_pages = max_pages
        self._clock = clock
        self.last_success_at: Optional[float] = None
        self.started_at: Optional[float] = None

    def start(self, on_emit) -> None:
        if not self.running:
            self.started_at = self._clock()
        super().start(on_emit)

    async def poll(self) -> list[NotificationEntry]:
        entries: list[NotificationEntry] = []
        cursor: Optional[str] = None
        for _ in range(self._max_pages):
            page = await self._api.get_notifications(cursor)
            for entry in page.entries:
                # Remote entries must never carry a local-only identity.
                if is_local_only(entry.id):
                    LOGGER.warning("Dropping remote notification with local id %s", entry.id)
                    continue
                entries.append(entry)
            cursor = page.next_cursor
            if not cursor:
                break
        else:
            LOGGER.warning("Stopped paging remote notifications after %s pages", self._max_pages)

        self.last_success_at = self._clock()
        return entries
