"""Intro cards, with one-time migration of legacy dismissals.

Older releases recorded dismissed cards as boolean flags in the app state
file (``legacy_dismissals``) and kept processed ids in a storage key the
tracker knows how to migrate. The first poll moves both into the tracker so
cards dismissed before the upgrade stay dismissed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional

from core.data_source import PollingDataSource
from core.ids import build_local_id
from core.models import INTRO_CARD, NotificationEntry
from core.ports import SchedulerPort
from core.shared_future import SharedFuture
from core.tracker import NotificationTracker

LOGGER = logging.getLogger(__name__)

SOURCE = "intro_cards"
DEFAULT_POLL_INTERVAL_SECONDS = 10.0
LEGACY_DISMISSALS_KEY = "legacy_dismissals"


@dataclass(frozen=True)
class IntroCard:
    """Static intro card definition from config.json."""

    name: str
    title: str
    body: str = ""
    link: Optional[str] = None
    requires: Optional[str] = None

    @property
    def notification_id(self) -> str:
        return intro_card_id(self.name)


def intro_card_id(name: str) -> str:
    return build_local_id("intro_card", name)


def build_intro_cards(cards_config: Iterable[Mapping[str, Any]]) -> list[IntroCard]:
    """Normalize card configs, skipping disabled or nameless entries."""

    cards: list[IntroCard] = []
    for card in cards_config:
        if not card.get("enabled", True):
            continue
        name = str(card.get("name") or "").strip()
        if not name:
            continue
        cards.append(
            IntroCard(
                name=name,
                title=str(card.get("title") or name),
                body=str(card.get("body") or ""),
                link=card.get("link") or None,
                requires=card.get("requires") or None,
            )
        )
    return cards


class IntroCardsDataSource(PollingDataSource):
    """Emits every configured intro card the user has not dismissed yet."""

    def __init__(
        self,
        cards: Iterable[IntroCard],
        tracker: NotificationTracker,
        get_state: Callable[[], Mapping[str, Any]],
        scheduler: SchedulerPort,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        super().__init__(SOURCE, poll_interval_seconds, scheduler)
        self._cards = list(cards)
        self._tracker = tracker
        self._get_state = get_state
        # Overlapping polls await the same migration instead of racing it.
        self._migration: SharedFuture[int] = SharedFuture()
        self.migration_runs = 0

    async def poll(self) -> list[NotificationEntry]:
        await self._migration.get(self._migrate_legacy_state)

        state = self._get_state()
        entries: list[NotificationEntry] = []
        for card in self._cards:
            if card.requires and not state.get(card.requires):
                continue
            if self._tracker.is_acknowledged(card.notification_id):
                continue
            payload: dict[str, Any] = {"title": card.title, "body": card.body, "actions": ["dismiss", "ack"]}
            if card.link:
                payload["link"] = card.link
            entries.append(
                NotificationEntry(
                    id=card.notification_id,
                    classification=INTRO_CARD,
                    payload=payload,
                )
            )
        return entries

    async def _migrate_legacy_state(self) -> int:
        """Run both legacy migrations. Failures are logged, never raised."""

        self.migration_runs += 1
        migrated = await self._tracker.migrate_legacy_state()
        try:
            flags = self._get_state().get(LEGACY_DISMISSALS_KEY) or {}
            for name, dismissed in flags.items():
                if not dismissed:
                    continue
                notification_id = intro_card_id(name)
                if self._tracker.is_acknowledged(notification_id):
                    continue
                LOGGER.info("Migrating legacy dismissal of intro card %s", name)
                await self._tracker.track(notification_id, {"migrated": True})
                migrated += 1
        except Exception as exc:
            LOGGER.warning("Legacy intro card migration failed", exc_info=exc)
        return migrated
