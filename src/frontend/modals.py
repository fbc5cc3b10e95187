"""Modal dialogs for the notification center."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Static

from core.models import ClickAction, ClickTarget, NotificationEntry


class NotificationModal(ModalScreen[str]):
    """Blocking dialog for one modal-lane entry.

    Dismisses with ``"open"`` (primary click) or ``"close"``.
    """

    BINDINGS = [("escape", "close", "Close")]

    def __init__(self, entry: NotificationEntry, body: Text) -> None:
        super().__init__()
        self.entry = entry
        self._body = body

    def compose(self) -> ComposeResult:
        target = ClickTarget.from_payload(self.entry.payload)
        primary = "Open" if target.url else "Got it"
        buttons = [Button(primary, id="modal-open", variant="success")]
        if self.entry.payload.get("dismissible", True) or ClickAction.DISMISS in target.actions:
            buttons.append(Button("Close", id="modal-close"))
        yield Container(
            Static(self.entry.classification.label(), classes="modal-title"),
            Static(self._body, classes="modal-body"),
            Horizontal(*buttons, classes="modal-actions"),
            classes="modal-dialog",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "modal-open":
            self.dismiss("open")
        else:
            self.dismiss("close")

    def action_close(self) -> None:
        self.dismiss("close")
