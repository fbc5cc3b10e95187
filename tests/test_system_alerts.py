from __future__ import annotations

import asyncio
from collections import namedtuple
from typing import Optional

import pytest

from adapters.memory_storage import MemoryStorage
from core.config import OutageNotice
from core.ids import build_occurrence_id
from core.models import SYSTEM_BANNER, NotificationEntry
from core.processor import NotificationProcessor
from core.tracker import NotificationTracker
from sources.system_alerts import (
    AlertCheck,
    SystemAlertsDataSource,
    low_disk_check,
    outage_check,
    stale_sync_check,
)

DiskUsage = namedtuple("DiskUsage", "total used free")


class FakeScheduler:
    def schedule_repeating(self, interval_seconds, callback):
        raise AssertionError("not scheduled in these tests")


class Toggle:
    """A condition the test switches on and off."""

    def __init__(self, kind: str, recurring: bool = True) -> None:
        self.on = False
        self.kind = kind
        self.check = AlertCheck(kind=kind, evaluate=self._evaluate, recurring=recurring)

    def _evaluate(self, occurrence: int) -> Optional[NotificationEntry]:
        if not self.on:
            return None
        return NotificationEntry(build_occurrence_id(self.kind, occurrence), SYSTEM_BANNER, {"title": self.kind})


def _poll(source: SystemAlertsDataSource) -> list[str]:
    return [entry.id for entry in asyncio.run(source.poll())]


def test_emits_only_highest_priority_alert() -> None:
    first = Toggle("first")
    second = Toggle("second")
    source = SystemAlertsDataSource([first.check, second.check], FakeScheduler())

    second.on = True
    assert _poll(source) == ["local:session:second:0"]

    first.on = True
    assert _poll(source) == ["local:session:first:0"]
    assert source.last_emitted_kind == "first"

    first.on = False
    second.on = False
    assert _poll(source) == []
    assert source.last_emitted_kind is None


def test_occurrence_bumps_on_clear_even_when_outranked() -> None:
    first = Toggle("first")
    second = Toggle("second")
    source = SystemAlertsDataSource([first.check, second.check], FakeScheduler())

    first.on = True
    second.on = True
    _poll(source)
    second.on = False
    _poll(source)

    assert source.occurrence("first") == 0
    assert source.occurrence("second") == 1


def test_non_recurring_alert_keeps_its_identity() -> None:
    steady = Toggle("steady", recurring=False)
    source = SystemAlertsDataSource([steady.check], FakeScheduler())

    steady.on = True
    _poll(source)
    steady.on = False
    _poll(source)
    steady.on = True

    assert _poll(source) == ["local:session:steady:0"]


def test_dismissed_occurrence_stays_dismissed_until_it_recurs() -> None:
    toggle = Toggle("stale_sync")
    source = SystemAlertsDataSource([toggle.check], FakeScheduler())
    tracker = NotificationTracker(MemoryStorage())
    processor = NotificationProcessor(tracker)

    toggle.on = True
    processor.ingest(source.source, asyncio.run(source.poll()))
    asyncio.run(tracker.track("local:session:stale_sync:0"))

    # Condition persists: the acknowledged occurrence is filtered out.
    processor.ingest(source.source, asyncio.run(source.poll()))
    assert processor.active() == []

    # Condition clears and returns: a fresh occurrence is shown.
    toggle.on = False
    processor.ingest(source.source, asyncio.run(source.poll()))
    toggle.on = True
    processor.ingest(source.source, asyncio.run(source.poll()))
    assert [entry.id for entry in processor.active()] == ["local:session:stale_sync:1"]


def test_failing_check_is_skipped(caplog) -> None:
    def broken(occurrence: int) -> Optional[NotificationEntry]:
        raise OSError("probe failed")

    fallback = Toggle("fallback")
    fallback.on = True
    source = SystemAlertsDataSource([AlertCheck("broken", broken), fallback.check], FakeScheduler())

    assert _poll(source) == ["local:session:fallback:0"]
    assert "System alert check broken failed" in caplog.text


def test_duplicate_kinds_are_rejected() -> None:
    with pytest.raises(ValueError):
        SystemAlertsDataSource([Toggle("a").check, Toggle("a").check], FakeScheduler())


def test_stale_sync_check_uses_start_time_before_first_success() -> None:
    now = [1000.0]
    state = {"last_success_at": None, "started_at": 900.0}
    check = stale_sync_check(
        lambda: state["last_success_at"],
        lambda: state["started_at"],
        stale_after_seconds=300,
        status_page_url="https://status.herald.example",
        clock=lambda: now[0],
    )

    assert check.evaluate(0) is None
    now[0] = 1300.0
    entry = check.evaluate(0)
    assert entry is not None
    assert entry.id == "local:session:stale_sync:0"
    assert entry.payload["link"] == "https://status.herald.example"

    state["last_success_at"] = 1250.0
    assert check.evaluate(0) is None


def test_outage_check_is_session_scoped_per_service() -> None:
    outage: list[Optional[OutageNotice]] = [None]
    check = outage_check(lambda: outage[0])

    assert check.evaluate(0) is None
    outage[0] = OutageNotice(service="sync", message="Sync is delayed", help_url="https://status.herald.example")
    entry = check.evaluate(3)
    assert entry.id == "local:session:outage:sync"
    assert entry.payload["body"] == "Sync is delayed"
    assert not check.recurring


def test_low_disk_check() -> None:
    free = [10 * 1024 * 1024]
    check = low_disk_check("/data", 50 * 1024 * 1024, disk_usage=lambda path: DiskUsage(0, 0, free[0]))

    entry = check.evaluate(1)
    assert entry.id == "local:session:low_disk:1"
    assert "10 MB" in entry.payload["body"]

    free[0] = 100 * 1024 * 1024
    assert check.evaluate(1) is None


def test_failing_check_keeps_current_occurrence() -> None:
    results = iter([True, None, True])

    def evaluate(occurrence: int) -> Optional[NotificationEntry]:
        outcome = next(results)
        if outcome is None:
            raise OSError("disk unavailable")
        return NotificationEntry(build_occurrence_id("low_disk", occurrence), SYSTEM_BANNER, {"title": "Low disk"})

    source = SystemAlertsDataSource([AlertCheck("low_disk", evaluate, recurring=True)], FakeScheduler())

    assert _poll(source) == ["local:session:low_disk:0"]
    assert _poll(source) == []
    assert _poll(source) == ["local:session:low_disk:0"]
    assert source.occurrence("low_disk") == 0
