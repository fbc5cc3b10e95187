"""Durable acknowledgment store.

Acknowledged identities never resurface. Remote identities are also acked
against the notification service; ``local:`` identities never are, and
``local:session:`` identities only live as long as the process.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Mapping, Optional

from core.data_source import OnceGuard
from core.ids import is_local_only, is_session_scoped
from core.models import TrackerRecord
from core.ports import NotificationsApiPort, StoragePort

LOGGER = logging.getLogger(__name__)

LEGACY_PROCESSED_KEY = "legacy.processed_notifications"
LEGACY_MIGRATION_MARKER = "migration.legacy_acks.v1"


def _now_ms() -> int:
    return int(time.time() * 1000)


class NotificationTracker:
    """Tracks which notification identities have been acknowledged."""

    def __init__(
        self,
        storage: StoragePort,
        api: Optional[NotificationsApiPort] = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._storage = storage
        self._session_acks: dict[str, TrackerRecord] = {}
        self._api = api
        self._clock = clock
        self._migration_guard = OnceGuard()

    async def track(self, notification_id: str, metadata: Optional[Mapping[str, Any]] = None) -> TrackerRecord:
        """Record an acknowledgment and, for remote identities, ack it upstream."""

        if not notification_id:
            raise ValueError("notification_id must not be empty")
        record = TrackerRecord(
            notification_id=notification_id,
            acked_at_ms=self._clock(),
            metadata=dict(metadata or {}),
        )
        if is_session_scoped(notification_id):
            self._session_acks[notification_id] = record
        else:
            self._storage.put_ack(record)

        if is_local_only(notification_id) or self._api is None:
            return record

        try:
            await self._api.ack_notification(notification_id)
        except Exception as exc:
            # The local record stands; the remote side will simply resend an
            # identity we already filter out.
            LOGGER.warning("Remote ack failed for %s", notification_id, exc_info=exc)
        return record

    def is_acknowledged(self, notification_id: str) -> bool:
        return self.get_record(notification_id) is not None

    def get_record(self, notification_id: str) -> Optional[TrackerRecord]:
        if is_session_scoped(notification_id):
            return self._session_acks.get(notification_id)
        return self._storage.get_ack(notification_id)

    def acknowledged_ids(self) -> set[str]:
        ids = {record.notification_id for record in self._storage.list_acks()}
        ids.update(self._session_acks)
        return ids

    async def migrate_legacy_state(self) -> int:
        """Move legacy processed ids into ack records, at most once.

        Returns the number of identities migrated by this call. A persisted
        marker keeps a completed migration from running again after restart;
        a crash before the marker is written lets the next start retry, which
        is safe because writing an ack record is idempotent.
        """

        if not self._migration_guard.try_acquire():
            return 0

        try:
            if self._storage.get_value(LEGACY_MIGRATION_MARKER):
                return 0

            raw = self._storage.get_value(LEGACY_PROCESSED_KEY)
            legacy = _parse_legacy_processed(raw)
            migrated = 0
            for notification_id, acked_at_ms in legacy.items():
                if self._storage.get_ack(notification_id) is not None:
                    continue
                self._storage.put_ack(
                    TrackerRecord(
                        notification_id=notification_id,
                        acked_at_ms=acked_at_ms if acked_at_ms is not None else self._clock(),
                        metadata={"migrated": True},
                    )
                )
                migrated += 1

            self._storage.set_value(LEGACY_MIGRATION_MARKER, str(self._clock()))
            if raw is not None:
                self._storage.delete_value(LEGACY_PROCESSED_KEY)
            if migrated:
                LOGGER.info("Migrated %s legacy acknowledgments", migrated)
            return migrated
        except Exception as exc:
            LOGGER.warning("Legacy acknowledgment migration failed", exc_info=exc)
            return 0

    def prune(self, older_than_days: int) -> int:
        """Delete durable records older than the horizon and return the count."""

        if older_than_days < 0:
            raise ValueError("older_than_days must be non-negative")
        cutoff = self._clock() - older_than_days * 24 * 60 * 60 * 1000
        return self._storage.delete_acks_before(cutoff)


def _parse_legacy_processed(raw: Optional[str]) -> dict[str, Optional[int]]:
    """Decode the legacy value: a JSON list of ids or an id -> timestamp object."""

    if not raw:
        return {}
    decoded = json.loads(raw)
    if isinstance(decoded, list):
        return {str(item): None for item in decoded if item}
    if isinstance(decoded, dict):
        parsed: dict[str, Optional[int]] = {}
        for key, value in decoded.items():
            if not key:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                parsed[str(key)] = None
            else:
                parsed[str(key)] = int(value)
        return parsed
    raise ValueError(f"Unsupported legacy processed value: {type(decoded).__name__}")
