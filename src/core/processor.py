"""Active-set maintenance for the notification pipeline.

This module is integration-agnostic. It owns the active set: only ``ingest``
and ``remove`` mutate it, and neither awaits, so each call is atomic with
respect to other callbacks on the event loop.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from core.models import NotificationEntry
from core.tracker import NotificationTracker

LOGGER = logging.getLogger(__name__)

ChangeListener = Callable[[list[NotificationEntry]], None]


class NotificationProcessor:
    """Merges per-source emissions into one deduplicated, un-acked active set."""

    def __init__(self, tracker: NotificationTracker) -> None:
        self._tracker = tracker
        self._active: dict[str, NotificationEntry] = {}
        self._listeners: list[ChangeListener] = []

    def ingest(self, source: str, entries: Iterable[NotificationEntry]) -> bool:
        """Replace ``source``'s contribution with ``entries``.

        Returns True when the active set changed and listeners were notified.
        """

        previous = dict(self._active)

        # Full replace for this source, never an accumulation.
        updated = {key: entry for key, entry in self._active.items() if entry.source != source}

        for entry in entries:
            entry = entry.with_source(source)
            if self._tracker.is_acknowledged(entry.id):
                LOGGER.debug("Skipping acknowledged notification %s from %s", entry.id, source)
                continue
            # Last writer wins for a shared id, whatever its source.
            updated.pop(entry.id, None)
            updated[entry.id] = entry

        self._active = updated
        if updated == previous:
            return False
        self._notify()
        return True

    def remove(self, notification_id: str) -> bool:
        """Drop one entry without acknowledging it."""

        if notification_id not in self._active:
            return False
        del self._active[notification_id]
        self._notify()
        return True

    def active(self) -> list[NotificationEntry]:
        return list(self._active.values())

    def get(self, notification_id: str) -> Optional[NotificationEntry]:
        return self._active.get(notification_id)

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener and return its unsubscribe function."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.active()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                LOGGER.exception("Active-set listener failed")
