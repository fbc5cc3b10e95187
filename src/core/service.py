"""Notification service: the root of the pipeline.

Data flow: source poll -> emit(entries, source) -> processor.ingest ->
active-set change -> renderer.render. Feedback from the renderer (shown,
clicked, render failed) comes back through this service.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from core.models import ClickTarget, NotificationEntry
from core.navigation import route_click
from core.ports import DataSourcePort, NavigatorPort, RendererPort
from core.processor import NotificationProcessor
from core.tracker import NotificationTracker

LOGGER = logging.getLogger(__name__)


class NotificationService:
    """Owns the data sources and routes renderer feedback to the tracker."""

    def __init__(
        self,
        data_sources: Iterable[DataSourcePort],
        tracker: NotificationTracker,
        processor: NotificationProcessor,
        renderer: RendererPort,
        navigator: Optional[NavigatorPort] = None,
        origin: Optional[str] = None,
        app_scheme: str = "herald",
    ) -> None:
        self._data_sources = list(data_sources)
        self._tracker = tracker
        self._processor = processor
        self._renderer = renderer
        self._navigator = navigator
        self._origin = origin
        self._app_scheme = app_scheme
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def data_sources(self) -> list[DataSourcePort]:
        return list(self._data_sources)

    @property
    def initialized(self) -> bool:
        return self._unsubscribe is not None

    def initialize(self) -> None:
        """Subscribe the renderer and start every data source."""

        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._processor.subscribe(self._renderer.render)
        for source in self._data_sources:
            try:
                source.start(self._on_emit)
            except Exception:
                LOGGER.exception("Failed to start data source %s", getattr(source, "source", source))
        LOGGER.info("Notification service started with %s data sources", len(self._data_sources))

    def destroy(self) -> None:
        """Stop every data source and detach the renderer. Safe to repeat."""

        for source in self._data_sources:
            try:
                source.stop()
            except Exception:
                LOGGER.exception("Failed to stop data source %s", getattr(source, "source", source))
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            LOGGER.info("Notification service stopped")

    def active(self) -> list[NotificationEntry]:
        return self._processor.active()

    def _on_emit(self, entries: list[NotificationEntry], source: str) -> None:
        self._processor.ingest(source, entries)

    def on_render_failed(self, notification_id: str) -> None:
        """Remove an entry the renderer could not present, without acking it.

        The originating source re-emits it on its next poll if the condition
        still holds. Renderers call this one tick after the failed render.
        """

        if self._processor.remove(notification_id):
            LOGGER.warning("Render failed for %s; removed until its next poll", notification_id)

    async def on_notification_shown(self, notification_id: str) -> None:
        await self._acknowledge(notification_id, {"event": "shown"})

    async def on_notification_click(self, notification_id: str, target: ClickTarget) -> None:
        """Apply the click's actions, then route its link if it has one."""

        if target.acknowledges():
            await self._acknowledge(notification_id, {"event": "click", "url": target.url})
        if target.dismisses():
            self._processor.remove(notification_id)
        if target.url and self._navigator is not None:
            route_click(target.url, self._navigator, origin=self._origin, app_scheme=self._app_scheme)

    async def _acknowledge(self, notification_id: str, metadata: dict) -> None:
        try:
            await self._tracker.track(notification_id, metadata)
        except Exception:
            LOGGER.exception("Failed to track notification %s", notification_id)
            return
        # The active set only ever holds un-acknowledged entries.
        self._processor.remove(notification_id)
        for source in self._data_sources:
            try:
                source.on_acknowledged(notification_id)
            except Exception:
                LOGGER.exception(
                    "Acknowledge hook failed for %s in %s",
                    notification_id,
                    getattr(source, "source", source),
                )
