"""SQLite storage adapter.

Implements the core StoragePort using a simple SQLite database.
"""

from __future__ import annotations

import json
import sqlite3
from typing import Optional

from core.models import TrackerRecord


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the StoragePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - acknowledgments: one row per acknowledged notification identity
        - kv: small key-value store for migration markers and legacy data
        """

        with self._connect() as conn:
            # Fields:
            # - notification_id: identity as emitted by the source (PRIMARY KEY)
            # - acked_at_ms: epoch milliseconds of the acknowledgment
            # - metadata: JSON object supplied by the caller of track()
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS acknowledgments (
                    notification_id TEXT PRIMARY KEY,
                    acked_at_ms INTEGER,
                    metadata TEXT NOT NULL DEFAULT '{}'
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    @staticmethod
    def _record(row: sqlite3.Row) -> TrackerRecord:
        try:
            metadata = json.loads(row["metadata"] or "{}")
        except json.JSONDecodeError:
            metadata = {}
        return TrackerRecord(
            notification_id=row["notification_id"],
            acked_at_ms=row["acked_at_ms"],
            metadata=metadata if isinstance(metadata, dict) else {},
        )

    def get_ack(self, notification_id: str) -> Optional[TrackerRecord]:
        """Return the acknowledgment for an identity, if any."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT notification_id, acked_at_ms, metadata FROM acknowledgments WHERE notification_id = ?",
                (notification_id,),
            ).fetchone()
        return self._record(row) if row else None

    def put_ack(self, record: TrackerRecord) -> None:
        """Upsert an acknowledgment. The newest write wins."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO acknowledgments (notification_id, acked_at_ms, metadata)
                VALUES (?, ?, ?)
                ON CONFLICT(notification_id) DO UPDATE SET
                    acked_at_ms = excluded.acked_at_ms,
                    metadata = excluded.metadata
                """,
                (record.notification_id, record.acked_at_ms, json.dumps(dict(record.metadata), default=str)),
            )

    def list_acks(self) -> list[TrackerRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT notification_id, acked_at_ms, metadata FROM acknowledgments ORDER BY acked_at_ms"
            ).fetchall()
        return [self._record(row) for row in rows]

    def delete_acks_before(self, cutoff_ms: int) -> int:
        """Delete acknowledgments older than the cutoff and return the number removed."""

        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM acknowledgments WHERE acked_at_ms IS NOT NULL AND acked_at_ms < ?",
                (cutoff_ms,),
            )
            return cur.rowcount

    def get_value(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set_value(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO kv (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )

    def delete_value(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
