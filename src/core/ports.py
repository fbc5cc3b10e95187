"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for storage, the remote notification
service, navigation and rendering so that the core can be reused with
different backends and presentation layers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence

from core.models import NotificationEntry, TrackerRecord

EmitCallback = Callable[[list[NotificationEntry], str], None]


class StoragePort(Protocol):
    """Persistence operations required by the tracker."""

    def get_ack(self, notification_id: str) -> Optional[TrackerRecord]:
        ...

    def put_ack(self, record: TrackerRecord) -> None:
        ...

    def list_acks(self) -> list[TrackerRecord]:
        ...

    def delete_acks_before(self, cutoff_ms: int) -> int:
        ...

    def get_value(self, key: str) -> Optional[str]:
        ...

    def set_value(self, key: str, value: str) -> None:
        ...

    def delete_value(self, key: str) -> None:
        ...


@dataclass(frozen=True)
class NotificationPage:
    """One page returned by the remote notification service."""

    entries: list[NotificationEntry]
    next_cursor: Optional[str] = None


class NotificationsApiPort(Protocol):
    """Remote notification service operations."""

    async def get_notifications(self, cursor: Optional[str] = None) -> NotificationPage:
        ...

    async def ack_notification(self, notification_id: str) -> None:
        ...


class NavigatorPort(Protocol):
    """Navigation collaborator used for notification clicks."""

    def navigate(self, path: str) -> None:
        ...

    def open_external(self, url: str) -> None:
        ...


class RendererPort(Protocol):
    """Presentation layer fed with every active-set change."""

    def render(self, active: Sequence[NotificationEntry]) -> None:
        ...


class DataSourcePort(Protocol):
    """A self-contained poller that reports its complete current set."""

    source: str

    def start(self, on_emit: EmitCallback) -> None:
        ...

    def stop(self) -> None:
        ...

    def on_acknowledged(self, notification_id: str) -> None:
        ...


class ScheduledTask(Protocol):
    def cancel(self) -> None:
        ...


class SchedulerPort(Protocol):
    """Runs a coroutine function now and then every interval until cancelled."""

    def schedule_repeating(self, interval_seconds: float, callback: Callable[[], object]) -> ScheduledTask:
        ...
