"""View state for the notification center."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from core.models import Lane, NotificationEntry

# Lanes presented as a blocking dialog, highest priority first.
MODAL_LANES: tuple[Lane, ...] = (Lane.FORCE_UPGRADE, Lane.MODAL, Lane.LOCAL_TRIGGER)
# Lanes presented in the feed, in display order.
FEED_LANES: tuple[Lane, ...] = (Lane.SYSTEM_BANNER, Lane.INLINE_BANNER, Lane.INTRO_CARD)


@dataclass
class FeedState:
    entries: list[NotificationEntry] = field(default_factory=list)
    modal_id: Optional[str] = None
    error: Optional[str] = None

    def update(self, active: Iterable[NotificationEntry]) -> None:
        self.entries = list(active)

    def by_lane(self) -> dict[Lane, list[NotificationEntry]]:
        grouped: dict[Lane, list[NotificationEntry]] = {lane: [] for lane in Lane}
        for entry in self.entries:
            grouped[entry.classification.lane].append(entry)
        return grouped

    def feed(self) -> list[NotificationEntry]:
        grouped = self.by_lane()
        return [entry for lane in FEED_LANES for entry in grouped[lane]]

    def next_modal(self) -> Optional[NotificationEntry]:
        grouped = self.by_lane()
        for lane in MODAL_LANES:
            if grouped[lane]:
                return grouped[lane][0]
        return None

    def find(self, notification_id: str) -> Optional[NotificationEntry]:
        for entry in self.entries:
            if entry.id == notification_id:
                return entry
        return None
