"""Map remote notification payloads into core NotificationEntry objects.

Keeps the remote schema out of the core. The service reports a ``style``
either as a name (``"MODAL"``, ``"inline_banner"``) or as its numeric code.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from core.models import INLINE_BANNER, MODAL, SYSTEM_BANNER, Classification, NotificationEntry

LOGGER = logging.getLogger(__name__)

_STYLES_BY_NAME: dict[str, Classification] = {
    "modal": MODAL,
    "inline_banner": INLINE_BANNER,
    "banner": INLINE_BANNER,
    "system_banner": SYSTEM_BANNER,
}

_STYLES_BY_CODE: dict[int, Classification] = {
    0: MODAL,
    1: INLINE_BANNER,
    2: SYSTEM_BANNER,
}


def decode_style(raw: Any) -> Optional[Classification]:
    """Return the classification for a remote style, or None when unknown."""

    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return _STYLES_BY_CODE.get(raw)
    if isinstance(raw, str):
        value = raw.strip()
        if value.isdigit():
            return _STYLES_BY_CODE.get(int(value))
        return _STYLES_BY_NAME.get(value.lower())
    return None


def decode_notification(raw: Mapping[str, Any]) -> Optional[NotificationEntry]:
    """Decode one remote notification.

    Unknown styles and malformed records are logged and dropped so a single
    bad record never fails the whole page.
    """

    notification_id = str(raw.get("id") or "").strip()
    if not notification_id:
        LOGGER.warning("Dropping remote notification without id: %r", raw)
        return None

    classification = decode_style(raw.get("style"))
    if classification is None:
        LOGGER.warning("Dropping remote notification %s with unknown style %r", notification_id, raw.get("style"))
        return None

    payload = raw.get("payload")
    if payload is None:
        payload = {key: value for key, value in raw.items() if key not in ("id", "style")}
    if not isinstance(payload, Mapping):
        LOGGER.warning("Dropping remote notification %s with invalid payload", notification_id)
        return None

    return NotificationEntry(id=notification_id, classification=classification, payload=dict(payload))


def decode_page(body: Mapping[str, Any]) -> tuple[list[NotificationEntry], Optional[str]]:
    """Decode a page response into entries and the next cursor."""

    entries: list[NotificationEntry] = []
    for raw in body.get("notifications") or []:
        if not isinstance(raw, Mapping):
            LOGGER.warning("Dropping non-object remote notification: %r", raw)
            continue
        entry = decode_notification(raw)
        if entry is not None:
            entries.append(entry)
    cursor = body.get("next_cursor") or None
    return entries, str(cursor) if cursor else None
