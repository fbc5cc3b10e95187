"""Main Textual app: the notification center renderer."""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Optional, Sequence

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Footer, ListItem, ListView, Static

from adapters.notification_formatting import LANE_TITLES, RenderError, format_entry
from core.models import ClickAction, ClickTarget, NotificationEntry
from core.service import NotificationService

from .constants import HERALD_GOLD, RENDER_FAILURE_DELAY_SECONDS
from .modals import NotificationModal
from .state import FeedState

LOGGER = logging.getLogger(__name__)


class NotificationCenterApp(App):
    """Renders the active set and reports user feedback to the service."""

    CSS = """
    Screen {
        background: #14161c;
        color: #e8eef5;
    }

    #header {
        height: 5;
        padding: 1 4;
        border-bottom: solid #2a3040;
    }

    #header-left, #header-right {
        width: 1fr;
    }

    #header-right {
        text-align: right;
    }

    #title {
        text-style: bold;
    }

    .subtle {
        color: #9aa6b2;
    }

    #feed {
        height: 1fr;
        padding: 0 2;
    }

    .lane-heading {
        color: #9aa6b2;
        text-style: bold;
        padding: 1 0 0 0;
    }

    #empty {
        height: 1fr;
        content-align: center middle;
        color: #9aa6b2;
    }

    .modal-dialog {
        width: 64;
        height: auto;
        padding: 1 2;
        border: thick #E8B339;
        background: #1c1f27;
    }

    NotificationModal {
        align: center middle;
    }

    .modal-title {
        text-style: bold;
        padding-bottom: 1;
    }

    .modal-actions {
        height: auto;
        padding-top: 1;
    }
    """

    BINDINGS = [
        ("o", "open_selected", "Open"),
        ("d", "dismiss_selected", "Dismiss"),
        ("q", "quit", "Quit"),
    ]

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.feed_state = FeedState()
        self._service: Optional[NotificationService] = None
        self._feed_ids: list[str] = []
        self._mounted = False

    def attach(self, service: NotificationService) -> None:
        self._service = service

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            with Horizontal():
                with Vertical(id="header-left"):
                    yield Static(self._title_text(), id="title")
                with Vertical(id="header-right"):
                    yield Static("", id="header-status", classes="subtle")
        yield ListView(id="feed")
        yield Static("Nothing to see here.", id="empty")
        yield Footer()

    def on_mount(self) -> None:
        self._mounted = True
        self._refresh_feed()
        if self._service is not None:
            self._service.initialize()

    def on_unmount(self) -> None:
        self._mounted = False
        if self._service is not None:
            self._service.destroy()

    def show_active(self, active: Sequence[NotificationEntry]) -> None:
        """Replace the displayed active set."""

        self.feed_state.update(active)
        if not self._mounted:
            return
        self._refresh_feed()
        self._maybe_show_modal()

    def _format(self, entry: NotificationEntry) -> Optional[Text]:
        try:
            return format_entry(entry)
        except RenderError as exc:
            LOGGER.warning("Cannot render %s: %s", entry.id, exc)
            if self._service is not None:
                self.set_timer(RENDER_FAILURE_DELAY_SECONDS, partial(self._service.on_render_failed, entry.id))
            return None

    def _refresh_feed(self) -> None:
        feed = self.query_one("#feed", ListView)
        feed.clear()
        self._feed_ids = []
        lane = None
        for entry in self.feed_state.feed():
            text = self._format(entry)
            if text is None:
                continue
            if entry.classification.lane != lane:
                lane = entry.classification.lane
                feed.append(ListItem(Static(LANE_TITLES[lane], classes="lane-heading"), disabled=True))
                self._feed_ids.append("")
            feed.append(ListItem(Static(text)))
            self._feed_ids.append(entry.id)

        self.query_one("#empty", Static).display = not self.feed_state.entries
        status = self.query_one("#header-status", Static)
        status.update(f"{len(self.feed_state.entries)} active")

    def _maybe_show_modal(self) -> None:
        if self.feed_state.modal_id is not None:
            return
        entry = self.feed_state.next_modal()
        if entry is None:
            return
        body = self._format(entry)
        if body is None:
            return
        self.feed_state.modal_id = entry.id
        self.push_screen(NotificationModal(entry, body), partial(self._handle_modal_choice, entry))

    async def _handle_modal_choice(self, entry: NotificationEntry, choice: Optional[str]) -> None:
        self.feed_state.modal_id = None
        if self._service is not None:
            if choice == "open":
                await self._service.on_notification_click(entry.id, ClickTarget.from_payload(entry.payload))
            else:
                await self._close(entry)
        self._maybe_show_modal()

    async def _close(self, entry: NotificationEntry) -> None:
        if self._service is None:
            return
        if entry.payload.get("dismissible", True):
            await self._service.on_notification_shown(entry.id)
        else:
            # Hidden until its source reports it again.
            await self._service.on_notification_click(entry.id, ClickTarget(actions=(ClickAction.DISMISS,)))

    def _selected(self) -> Optional[NotificationEntry]:
        feed = self.query_one("#feed", ListView)
        index = feed.index
        if index is None or index >= len(self._feed_ids):
            return None
        notification_id = self._feed_ids[index]
        return self.feed_state.find(notification_id) if notification_id else None

    async def on_list_view_selected(self, event: ListView.Selected) -> None:
        await self.action_open_selected()

    async def action_open_selected(self) -> None:
        entry = self._selected()
        if entry is None or self._service is None:
            return
        await self._service.on_notification_click(entry.id, ClickTarget.from_payload(entry.payload))

    async def action_dismiss_selected(self) -> None:
        entry = self._selected()
        if entry is None or self._service is None:
            return
        await self._close(entry)

    def show_route(self, path: str) -> None:
        self.notify(f"Navigate to {path}", title="herald")

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("HER", HERALD_GOLD),
            ("ALD > Notification Center", "bold"),
        )


class FeedRenderer:
    """RendererPort that forwards active-set changes to the app."""

    def __init__(self, app: NotificationCenterApp) -> None:
        self._app = app

    def render(self, active: Sequence[NotificationEntry]) -> None:
        self._app.show_active(active)
