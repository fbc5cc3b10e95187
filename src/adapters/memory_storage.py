"""In-memory storage adapter, used by `herald poll --ephemeral` and tests."""

from __future__ import annotations

from typing import Optional

from core.models import TrackerRecord


class MemoryStorage:
    """Dictionary-backed StoragePort."""

    def __init__(self) -> None:
        self._acks: dict[str, TrackerRecord] = {}
        self._values: dict[str, str] = {}

    def get_ack(self, notification_id: str) -> Optional[TrackerRecord]:
        return self._acks.get(notification_id)

    def put_ack(self, record: TrackerRecord) -> None:
        self._acks[record.notification_id] = record

    def list_acks(self) -> list[TrackerRecord]:
        return sorted(self._acks.values(), key=lambda record: record.acked_at_ms or 0)

    def delete_acks_before(self, cutoff_ms: int) -> int:
        stale = [
            key
            for key, record in self._acks.items()
            if record.acked_at_ms is not None and record.acked_at_ms < cutoff_ms
        ]
        for key in stale:
            del self._acks[key]
        return len(stale)

    def get_value(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set_value(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete_value(self, key: str) -> None:
        self._values.pop(key, None)
