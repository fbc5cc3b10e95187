from __future__ import annotations

import pytest

from adapters.notification_formatting import LANE_STYLES, LANE_TITLES, RenderError, format_entry, format_plain
from core.models import FORCE_UPGRADE, INTRO_CARD, SYSTEM_BANNER, Lane, NotificationEntry


def test_every_lane_has_a_style_and_title() -> None:
    assert set(LANE_STYLES) == set(Lane)
    assert set(LANE_TITLES) == set(Lane)


def test_format_entry_includes_body_and_link() -> None:
    entry = NotificationEntry(
        "local:session:outage:sync",
        SYSTEM_BANNER,
        {"title": "Sync is degraded", "body": "We are on it.", "link": "https://status.example", "icon": "!"},
    )

    text = format_entry(entry)

    assert text.plain == "! Sync is degraded\nWe are on it.\nhttps://status.example"


def test_missing_title_raises_render_error() -> None:
    with pytest.raises(RenderError):
        format_entry(NotificationEntry("srv-1", INTRO_CARD, {"body": "no title"}))


def test_non_text_field_raises_render_error() -> None:
    with pytest.raises(RenderError):
        format_entry(NotificationEntry("srv-1", INTRO_CARD, {"title": {"en": "Hello"}}))


def test_format_plain() -> None:
    entry = NotificationEntry("local:force_upgrade_required_modal", FORCE_UPGRADE, {}, source="force_upgrade")
    assert format_plain(entry) == "[force_upgrade] local:force_upgrade_required_modal: <untitled> (force_upgrade)"
