"""Shared notification formatting helpers.

The TUI and the ``herald poll`` command both print entries through these
helpers so the two never drift apart.
"""

from __future__ import annotations

from typing import Any, Mapping

from rich.text import Text

from core.models import Lane, NotificationEntry

LANE_STYLES: dict[Lane, str] = {
    Lane.MODAL: "bold magenta",
    Lane.INLINE_BANNER: "cyan",
    Lane.SYSTEM_BANNER: "bold yellow",
    Lane.INTRO_CARD: "green",
    Lane.FORCE_UPGRADE: "bold red",
    Lane.LOCAL_TRIGGER: "blue",
}

LANE_TITLES: dict[Lane, str] = {
    Lane.FORCE_UPGRADE: "Upgrade",
    Lane.MODAL: "Announcements",
    Lane.SYSTEM_BANNER: "System",
    Lane.INLINE_BANNER: "Banners",
    Lane.LOCAL_TRIGGER: "Reminders",
    Lane.INTRO_CARD: "Getting started",
}


class RenderError(ValueError):
    """Raised when an entry payload cannot be presented."""


def _text_field(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, (str, int, float)):
        raise RenderError(f"Field {key!r} must be text, got {type(value).__name__}")
    return str(value).strip()


def format_entry(entry: NotificationEntry) -> Text:
    """Return a rich Text block for one entry.

    Raises RenderError when the payload has no usable title.
    """

    title = _text_field(entry.payload, "title")
    if not title:
        raise RenderError(f"Notification {entry.id} has no title")
    body = _text_field(entry.payload, "body")
    link = _text_field(entry.payload, "link")

    text = Text()
    icon = _text_field(entry.payload, "icon")
    if icon:
        text.append(f"{icon} ")
    text.append(title, style=LANE_STYLES[entry.classification.lane])
    if body:
        text.append("\n")
        text.append(body)
    if link:
        text.append("\n")
        text.append(link, style="underline dim")
    return text


def format_plain(entry: NotificationEntry) -> str:
    """One-line summary used by the CLI and logs."""

    return f"[{entry.classification.label()}] {entry.id}: {entry.title or '<untitled>'} ({entry.source})"
