"""System health alerts (stale sync, outage notice, low disk).

Checks run in a fixed priority order and only the highest-priority active
alert is emitted, so at most one system banner is visible at a time.

Recurring alert kinds keep an occurrence counter that is bumped when the
condition goes from true to false. The counter is folded into the identity,
so a dismissed occurrence stays dismissed while the next one is shown.
"""

from __future__ import annotations

import logging
import shutil
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from core.config import OutageNotice
from core.data_source import PollingDataSource
from core.ids import build_occurrence_id, build_session_id
from core.models import SYSTEM_BANNER, NotificationEntry
from core.ports import SchedulerPort

LOGGER = logging.getLogger(__name__)

SOURCE = "system_alerts"
DEFAULT_POLL_INTERVAL_SECONDS = 5.0

STALE_SYNC = "stale_sync"
OUTAGE = "outage"
LOW_DISK = "low_disk"


@dataclass(frozen=True)
class AlertCheck:
    """One named check. ``evaluate`` gets the kind's current occurrence."""

    kind: str
    evaluate: Callable[[int], Optional[NotificationEntry]]
    recurring: bool = False


class SystemAlertsDataSource(PollingDataSource):
    """Emits the single highest-priority active alert, or nothing."""

    def __init__(
        self,
        checks: Iterable[AlertCheck],
        scheduler: SchedulerPort,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        super().__init__(SOURCE, poll_interval_seconds, scheduler)
        self._checks = list(checks)
        kinds = [check.kind for check in self._checks]
        if len(set(kinds)) != len(kinds):
            raise ValueError("alert check kinds must be unique")
        self._occurrences: dict[str, int] = {kind: 0 for kind in kinds}
        self._previously_active: set[str] = set()
        self.last_emitted_kind: Optional[str] = None

    def occurrence(self, kind: str) -> int:
        return self._occurrences[kind]

    def stop(self) -> None:
        super().stop()
        self._previously_active = set()
        self.last_emitted_kind = None

    async def poll(self) -> list[NotificationEntry]:
        active: dict[str, NotificationEntry] = {}
        failed: set[str] = set()
        for check in self._checks:
            try:
                entry = check.evaluate(self._occurrences[check.kind])
            except Exception:
                LOGGER.exception("System alert check %s failed", check.kind)
                failed.add(check.kind)
                continue
            if entry is not None:
                active[check.kind] = entry

        # Bump only on the true -> false transition. A failed check is unknown, not false.
        for check in self._checks:
            if check.kind in failed:
                continue
            if check.recurring and check.kind in self._previously_active and check.kind not in active:
                self._occurrences[check.kind] += 1
                LOGGER.debug("Alert %s cleared; next occurrence is %s", check.kind, self._occurrences[check.kind])
        self._previously_active = set(active) | (failed & self._previously_active)

        for check in self._checks:
            if check.kind in active:
                if self.last_emitted_kind != check.kind:
                    LOGGER.info("System alert active: %s", check.kind)
                self.last_emitted_kind = check.kind
                return [active[check.kind]]

        self.last_emitted_kind = None
        return []


def stale_sync_check(
    get_last_success_at: Callable[[], Optional[float]],
    get_started_at: Callable[[], Optional[float]],
    stale_after_seconds: float,
    status_page_url: Optional[str] = None,
    clock: Callable[[], float] = time.time,
) -> AlertCheck:
    """Alert when the remote source has not synced for ``stale_after_seconds``.

    Before the first success the grace period counts from the source start.
    """

    def evaluate(occurrence: int) -> Optional[NotificationEntry]:
        reference = get_last_success_at() or get_started_at()
        if reference is None:
            return None
        lag = clock() - reference
        if lag <= stale_after_seconds:
            return None
        payload = {
            "title": "Connection problem",
            "body": f"Notifications have not synced for {int(lag // 60)} min.",
            "icon": "caution",
            "actions": ["dismiss", "ack"],
        }
        if status_page_url:
            payload["link"] = status_page_url
        return NotificationEntry(
            id=build_occurrence_id(STALE_SYNC, occurrence),
            classification=SYSTEM_BANNER,
            payload=payload,
        )

    return AlertCheck(kind=STALE_SYNC, evaluate=evaluate, recurring=True)


def outage_check(get_outage: Callable[[], Optional[OutageNotice]]) -> AlertCheck:
    """Alert while an outage notice is configured."""

    def evaluate(occurrence: int) -> Optional[NotificationEntry]:
        outage = get_outage()
        if outage is None:
            return None
        payload = {
            "title": f"{outage.service} is degraded",
            "body": outage.message,
            "icon": "globe",
            "actions": ["dismiss", "ack"],
        }
        if outage.help_url:
            payload["link"] = outage.help_url
        return NotificationEntry(
            id=build_session_id(OUTAGE, outage.service),
            classification=SYSTEM_BANNER,
            payload=payload,
        )

    return AlertCheck(kind=OUTAGE, evaluate=evaluate)


def low_disk_check(
    path: str,
    threshold_bytes: int,
    disk_usage: Callable[[str], Any] = shutil.disk_usage,
) -> AlertCheck:
    """Alert when free space on the data directory drops below the threshold."""

    def evaluate(occurrence: int) -> Optional[NotificationEntry]:
        free = disk_usage(path).free
        if free >= threshold_bytes:
            return None
        return NotificationEntry(
            id=build_occurrence_id(LOW_DISK, occurrence),
            classification=SYSTEM_BANNER,
            payload={
                "title": "Low disk space",
                "body": f"Only {free // (1024 * 1024)} MB left where herald keeps its data.",
                "icon": "disk",
                "actions": ["dismiss", "ack"],
            },
        )

    return AlertCheck(kind=LOW_DISK, evaluate=evaluate, recurring=True)
