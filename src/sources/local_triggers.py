"""Condition-based local notifications.

Unlike the remote source, triggers look at local application state to decide
whether to show a notification (backup reminders, rating prompts, ...).
Trigger identities must be ``local:`` so they are never acked upstream.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional, Union

from core.data_source import PollingDataSource
from core.ids import is_local_only
from core.models import NotificationEntry
from core.ports import SchedulerPort
from core.tracker import NotificationTracker

LOGGER = logging.getLogger(__name__)

SOURCE = "local_triggers"
DEFAULT_POLL_INTERVAL_SECONDS = 5.0


@dataclass(frozen=True)
class TriggerCondition:
    """A local notification shown whenever ``should_show`` holds."""

    id: str
    should_show: Callable[[], Union[bool, Awaitable[bool]]]
    create_notification: Callable[[], NotificationEntry]
    on_acknowledge: Optional[Callable[[], None]] = None

    def __post_init__(self) -> None:
        if not is_local_only(self.id):
            raise ValueError(f"trigger id must be local-only: {self.id}")


class LocalTriggerDataSource(PollingDataSource):
    """Evaluates every trigger on each poll and emits those that hold."""

    def __init__(
        self,
        triggers: Iterable[TriggerCondition],
        tracker: NotificationTracker,
        scheduler: SchedulerPort,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        source: str = SOURCE,
    ) -> None:
        super().__init__(source, poll_interval_seconds, scheduler)
        self._triggers = list(triggers)
        self._tracker = tracker

    @property
    def triggers(self) -> list[TriggerCondition]:
        return list(self._triggers)

    async def poll(self) -> list[NotificationEntry]:
        entries: list[NotificationEntry] = []
        for trigger in self._triggers:
            try:
                if self._tracker.is_acknowledged(trigger.id):
                    continue
                result = trigger.should_show()
                if inspect.isawaitable(result):
                    result = await result
                if result:
                    entries.append(trigger.create_notification())
            except Exception:
                LOGGER.exception("Trigger %s failed", trigger.id)
        return entries

    def on_acknowledged(self, notification_id: str) -> None:
        trigger = get_trigger_by_id(self._triggers, notification_id)
        if trigger is None or trigger.on_acknowledge is None:
            return
        trigger.on_acknowledge()


def get_trigger_by_id(triggers: Iterable[TriggerCondition], notification_id: str) -> Optional[TriggerCondition]:
    for trigger in triggers:
        if trigger.id == notification_id:
            return trigger
    return None
