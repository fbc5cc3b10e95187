"""Built-in local trigger conditions."""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable, Mapping

from core.models import Classification, NotificationEntry
from sources.local_triggers import TriggerCondition

LOGGER = logging.getLogger(__name__)

BACKUP_REMINDER_NOTIFICATION_ID = "local:backup_reminder_modal"
BACKUP_REMINDER_COOLDOWN_MS = 24 * 60 * 60 * 1000
MIN_DATA_SIZE_FOR_BACKUP_REMINDER = 1024 * 1024

LAST_SEEN_KEY = "backup_reminder_last_seen_ts"


def _now_ms() -> int:
    return int(time.time() * 1000)


def create_backup_reminder_trigger(
    get_state: Callable[[], Mapping[str, Any]],
    set_state_value: Callable[[str, Any], None],
    get_data_size: Callable[[], Awaitable[int]],
    clock: Callable[[], int] = _now_ms,
) -> TriggerCondition:
    """Remind the user to back up once there is enough data worth keeping.

    Shows when the app state reports no backup, the last reminder is older
    than the cooldown and the data directory holds at least 1 MB.
    """

    async def should_show() -> bool:
        state = get_state()
        # Cheap state checks first; the size probe may hit the disk.
        if state.get("has_backup", True):
            return False
        last_seen = state.get(LAST_SEEN_KEY)
        if isinstance(last_seen, (int, float)) and clock() - last_seen < BACKUP_REMINDER_COOLDOWN_MS:
            return False
        try:
            size = await get_data_size()
        except Exception as exc:
            LOGGER.debug("Backup reminder size probe failed: %s", exc)
            return False
        return size >= MIN_DATA_SIZE_FOR_BACKUP_REMINDER

    def create_notification() -> NotificationEntry:
        return NotificationEntry(
            id=BACKUP_REMINDER_NOTIFICATION_ID,
            classification=Classification.local_trigger("backup_reminder"),
            payload={
                "title": "Back up your data",
                "body": "You have no backup yet. Export one now so nothing is lost.",
                "link": "herald://backup",
                "actions": ["dismiss", "ack"],
            },
        )

    def on_acknowledge() -> None:
        set_state_value(LAST_SEEN_KEY, clock())

    return TriggerCondition(
        id=BACKUP_REMINDER_NOTIFICATION_ID,
        should_show=should_show,
        create_notification=create_notification,
        on_acknowledge=on_acknowledge,
    )
