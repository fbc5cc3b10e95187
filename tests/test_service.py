from __future__ import annotations

import asyncio
from typing import Optional

from adapters.memory_storage import MemoryStorage
from core.data_source import IntervalDataSource
from core.models import INLINE_BANNER, MODAL, ClickAction, ClickTarget, NotificationEntry
from core.processor import NotificationProcessor
from core.scheduler import AsyncioScheduler
from core.service import NotificationService
from core.tracker import NotificationTracker


class FakeSource:
    def __init__(self, source: str, fail_start: bool = False) -> None:
        self.source = source
        self.fail_start = fail_start
        self.on_emit = None
        self.starts = 0
        self.stops = 0
        self.acknowledged: list[str] = []

    def start(self, on_emit) -> None:
        if self.fail_start:
            raise RuntimeError("cannot start")
        self.starts += 1
        self.on_emit = on_emit

    def stop(self) -> None:
        self.stops += 1

    def on_acknowledged(self, notification_id: str) -> None:
        self.acknowledged.append(notification_id)

    def emit(self, *entries: NotificationEntry) -> None:
        self.on_emit(list(entries), self.source)


class FakeRenderer:
    def __init__(self) -> None:
        self.renders: list[list[NotificationEntry]] = []

    def render(self, active) -> None:
        self.renders.append(list(active))

    @property
    def last_ids(self) -> list[str]:
        return [entry.id for entry in self.renders[-1]] if self.renders else []


class FakeNavigator:
    def __init__(self) -> None:
        self.paths: list[str] = []
        self.urls: list[str] = []

    def navigate(self, path: str) -> None:
        self.paths.append(path)

    def open_external(self, url: str) -> None:
        self.urls.append(url)


def _build(
    *sources: FakeSource,
    origin: Optional[str] = None,
) -> tuple[NotificationService, NotificationTracker, FakeRenderer, FakeNavigator]:
    tracker = NotificationTracker(MemoryStorage())
    renderer = FakeRenderer()
    navigator = FakeNavigator()
    service = NotificationService(
        sources,
        tracker,
        NotificationProcessor(tracker),
        renderer,
        navigator=navigator,
        origin=origin,
    )
    return service, tracker, renderer, navigator


def _entry(notification_id: str, **payload) -> NotificationEntry:
    payload.setdefault("title", notification_id)
    return NotificationEntry(notification_id, MODAL, payload)


def test_initialize_and_destroy_are_idempotent() -> None:
    remote = FakeSource("remote")
    service, _tracker, renderer, _nav = _build(remote)

    service.initialize()
    service.initialize()
    assert remote.starts == 1
    assert service.initialized

    remote.emit(_entry("srv-1"))
    assert renderer.last_ids == ["srv-1"]

    service.destroy()
    service.destroy()
    assert not service.initialized
    assert remote.stops == 2

    # Detached: later emissions no longer reach the renderer.
    remote.emit(_entry("srv-2"))
    assert renderer.last_ids == ["srv-1"]


def test_failing_source_start_does_not_block_others() -> None:
    broken = FakeSource("broken", fail_start=True)
    healthy = FakeSource("healthy")
    service, _tracker, _renderer, _nav = _build(broken, healthy)

    service.initialize()

    assert healthy.starts == 1


def test_shown_acknowledges_and_filters_future_emissions() -> None:
    remote = FakeSource("remote")
    alerts = FakeSource("alerts")
    service, tracker, renderer, _nav = _build(remote, alerts)
    service.initialize()
    remote.emit(_entry("srv-1"), _entry("srv-2"))

    asyncio.run(service.on_notification_shown("srv-1"))

    assert tracker.get_record("srv-1").metadata == {"event": "shown"}
    assert remote.acknowledged == ["srv-1"]
    assert alerts.acknowledged == ["srv-1"]

    remote.emit(_entry("srv-1"), _entry("srv-2"))
    assert renderer.last_ids == ["srv-2"]


def test_click_with_ack_removes_and_routes_in_app() -> None:
    remote = FakeSource("remote")
    service, tracker, renderer, navigator = _build(remote)
    service.initialize()
    remote.emit(_entry("srv-1", link="/inbox"))

    asyncio.run(service.on_notification_click("srv-1", ClickTarget(url="/inbox", actions=(ClickAction.ACK,))))

    assert tracker.is_acknowledged("srv-1")
    assert renderer.last_ids == []
    assert navigator.paths == ["/inbox"]


def test_dismiss_only_click_removes_without_ack() -> None:
    remote = FakeSource("remote")
    service, tracker, renderer, _nav = _build(remote)
    service.initialize()
    remote.emit(_entry("srv-1"))

    asyncio.run(service.on_notification_click("srv-1", ClickTarget(actions=(ClickAction.DISMISS,))))

    assert not tracker.is_acknowledged("srv-1")
    assert renderer.last_ids == []
    assert remote.acknowledged == []

    remote.emit(_entry("srv-1"))
    assert renderer.last_ids == ["srv-1"]


def test_external_link_click_keeps_entry() -> None:
    remote = FakeSource("remote")
    service, tracker, renderer, navigator = _build(remote, origin="https://app.herald.example")
    service.initialize()
    remote.emit(_entry("srv-1"))

    target = ClickTarget(url="https://docs.example.com/guide", actions=(ClickAction.EXTERNAL_LINK,))
    asyncio.run(service.on_notification_click("srv-1", target))

    assert not tracker.is_acknowledged("srv-1")
    assert renderer.last_ids == ["srv-1"]
    assert navigator.urls == ["https://docs.example.com/guide"]


def test_same_origin_link_navigates_in_app() -> None:
    remote = FakeSource("remote")
    service, _tracker, _renderer, navigator = _build(remote, origin="https://app.herald.example")
    service.initialize()
    remote.emit(_entry("srv-1"))

    asyncio.run(service.on_notification_click("srv-1", ClickTarget(url="https://app.herald.example/billing?tab=2")))

    assert navigator.paths == ["/billing?tab=2"]


def test_render_failure_removes_until_next_poll() -> None:
    banners = FakeSource("banners")
    service, tracker, renderer, _nav = _build(banners)
    service.initialize()
    broken = NotificationEntry("local:banner:broken", INLINE_BANNER, {"body": "no title"})
    banners.emit(broken)

    service.on_render_failed("local:banner:broken")

    assert renderer.last_ids == []
    assert not tracker.is_acknowledged("local:banner:broken")
    banners.emit(broken)
    assert renderer.last_ids == ["local:banner:broken"]


def test_tracking_failure_skips_acknowledge_hooks(caplog) -> None:
    remote = FakeSource("remote")
    service, _tracker, _renderer, _nav = _build(remote)
    service.initialize()

    asyncio.run(service.on_notification_shown(""))

    assert remote.acknowledged == []
    assert "Failed to track notification" in caplog.text


def test_shown_removes_entry_from_active_set_immediately() -> None:
    remote = FakeSource("remote")
    service, tracker, renderer, _nav = _build(remote)
    service.initialize()
    remote.emit(_entry("srv-1"), _entry("srv-2"))

    asyncio.run(service.on_notification_shown("srv-1"))

    assert tracker.is_acknowledged("srv-1")
    assert [entry.id for entry in service.active()] == ["srv-2"]
    assert renderer.last_ids == ["srv-2"]


def _polled_service(get_notifications) -> tuple[NotificationService, NotificationTracker, FakeRenderer, AsyncioScheduler]:
    tracker = NotificationTracker(MemoryStorage())
    renderer = FakeRenderer()
    scheduler = AsyncioScheduler()
    source = IntervalDataSource("banners", 60, scheduler, get_notifications)
    service = NotificationService([source], tracker, NotificationProcessor(tracker), renderer)
    return service, tracker, renderer, scheduler


def test_polled_entries_reach_renderer_and_stay_gone_once_acknowledged(caplog) -> None:
    service, tracker, renderer, scheduler = _polled_service(lambda: [_entry("x"), _entry("y")])

    async def scenario() -> None:
        service.initialize()
        await scheduler.drain()
        assert renderer.last_ids == ["x", "y"]

        await service.on_notification_shown("x")
        assert renderer.last_ids == ["y"]

        # Restarting polls the source again straight away.
        service.destroy()
        service.initialize()
        await scheduler.drain()
        service.destroy()

    asyncio.run(scenario())

    assert tracker.is_acknowledged("x")
    assert renderer.last_ids == ["y"]
    assert "Poll failed" not in caplog.text


def test_polled_entry_returns_after_render_failure() -> None:
    broken = NotificationEntry("local:banner:broken", INLINE_BANNER, {"body": "no title"})
    service, tracker, renderer, scheduler = _polled_service(lambda: [broken])

    async def scenario() -> None:
        service.initialize()
        await scheduler.drain()
        assert renderer.last_ids == ["local:banner:broken"]

        service.on_render_failed("local:banner:broken")
        assert renderer.last_ids == []

        service.destroy()
        service.initialize()
        await scheduler.drain()
        service.destroy()

    asyncio.run(scenario())

    assert not tracker.is_acknowledged("local:banner:broken")
    assert renderer.last_ids == ["local:banner:broken"]
