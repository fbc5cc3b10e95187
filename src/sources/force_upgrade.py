"""Force-upgrade prompts.

Required and recommended upgrades use different identities: a recommended
prompt can be acked away for good, a required one keeps coming back until
the installed version catches up.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Mapping, Optional

from core.data_source import IntervalDataSource
from core.models import FORCE_UPGRADE, NotificationEntry
from core.ports import SchedulerPort

LOGGER = logging.getLogger(__name__)

SOURCE = "force_upgrade"
DEFAULT_POLL_INTERVAL_SECONDS = 30.0

REQUIRED_ID = "local:force_upgrade_required_modal"
RECOMMENDED_ID = "local:force_upgrade_recommended_modal"

REQUIRED = "required"
RECOMMENDED = "recommended"
NOT_REQUIRED = "not-required"


def parse_version(value: str) -> tuple[int, ...]:
    """Parse ``1.2.3`` (ignoring any suffix such as ``rc1``) into a tuple."""

    parts = re.findall(r"\d+", str(value).split("+", 1)[0])
    if not parts:
        raise ValueError(f"Invalid version: {value!r}")
    return tuple(int(part) for part in parts[:3])


def upgrade_status(installed: str, min_version: Optional[str], recommended_version: Optional[str]) -> str:
    current = parse_version(installed)
    if min_version and current < parse_version(min_version):
        return REQUIRED
    if recommended_version and current < parse_version(recommended_version):
        return RECOMMENDED
    return NOT_REQUIRED


def create_force_upgrade_notification(status: str, download_url: Optional[str]) -> NotificationEntry:
    is_required = status == REQUIRED
    # Required: no ack, it persists until the upgrade. Recommended: ack dismisses for good.
    actions = ["external_link", "dismiss"] if is_required else ["external_link", "dismiss", "ack"]
    payload: dict[str, Any] = {
        "title": "Update required" if is_required else "Update available",
        "body": "This version is no longer supported." if is_required else "A newer herald release is available.",
        "actions": actions,
        "dismissible": not is_required,
    }
    if download_url:
        payload["link"] = download_url
    return NotificationEntry(
        id=REQUIRED_ID if is_required else RECOMMENDED_ID,
        classification=FORCE_UPGRADE,
        payload=payload,
    )


def create_force_upgrade_data_source(
    installed_version: str,
    get_state: Callable[[], Mapping[str, Any]],
    scheduler: SchedulerPort,
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
    download_url: Optional[str] = None,
) -> IntervalDataSource:
    """Build the force-upgrade source from the versions published in app state."""

    def get_notifications() -> list[NotificationEntry]:
        state = get_state()
        try:
            status = upgrade_status(
                installed_version,
                state.get("min_version"),
                state.get("recommended_version"),
            )
        except ValueError as exc:
            LOGGER.warning("Ignoring unparsable upgrade versions: %s", exc)
            return []
        if status == NOT_REQUIRED:
            return []
        return [create_force_upgrade_notification(status, download_url)]

    return IntervalDataSource(SOURCE, poll_interval_seconds, scheduler, get_notifications)
