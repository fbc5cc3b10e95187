from __future__ import annotations

from core.models import FORCE_UPGRADE, INLINE_BANNER, INTRO_CARD, MODAL, SYSTEM_BANNER, NotificationEntry
from frontend.state import FeedState


def _entry(notification_id: str, classification) -> NotificationEntry:
    return NotificationEntry(notification_id, classification, {"title": notification_id})


def test_feed_orders_lanes_and_excludes_modals() -> None:
    state = FeedState()
    state.update(
        [
            _entry("card", INTRO_CARD),
            _entry("modal", MODAL),
            _entry("banner", INLINE_BANNER),
            _entry("alert", SYSTEM_BANNER),
        ]
    )

    assert [entry.id for entry in state.feed()] == ["alert", "banner", "card"]


def test_force_upgrade_outranks_other_modals() -> None:
    state = FeedState()
    state.update([_entry("modal", MODAL), _entry("upgrade", FORCE_UPGRADE)])

    assert state.next_modal().id == "upgrade"
    assert state.find("modal").classification == MODAL
    assert state.find("missing") is None


def test_no_modal_when_only_banners() -> None:
    state = FeedState()
    state.update([_entry("banner", INLINE_BANNER)])
    assert state.next_modal() is None
