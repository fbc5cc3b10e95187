"""Static configuration for herald.

All user-editable settings (sources, thresholds, intro cards, logging) live in
a single JSON file for quick edits without touching Python. Secrets come from
the environment (``.env`` is honored).
"""

import json
import os
from typing import Any, Optional

from dotenv import load_dotenv

from core.config import OutageNotice, PollingConfig, RemoteConfig, SystemAlertsConfig, TrackerConfig

load_dotenv()

VERSION = "1.0.0"

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# HERALD_CONFIG points at an alternative config file (handy for tests and demos).
CONFIG_PATH = os.getenv("HERALD_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        loaded = json.load(handle)
    if not isinstance(loaded, dict):
        raise ValueError(f"Config root must be an object: {CONFIG_PATH}")
    return loaded


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


def _polling(section: dict, default_interval: float) -> PollingConfig:
    return PollingConfig(
        enabled=bool(section.get("enabled", True)),
        poll_interval_seconds=float(section.get("poll_interval_seconds", default_interval)),
    )


def _outage(section: Optional[dict]) -> Optional[OutageNotice]:
    if not section or not section.get("service"):
        return None
    return OutageNotice(
        service=str(section["service"]),
        message=str(section.get("message") or f"{section['service']} is experiencing problems."),
        help_url=section.get("help_url") or None,
    )


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG: dict[str, Any] = _CONFIG

# SQLite database holding acknowledgments and migration markers.
DB_PATH = _resolve_path(_CONFIG.get("db_path", "herald.db"))
# Host application state file (has_backup, min_version, legacy dismissals).
APP_STATE_PATH = _resolve_path(_CONFIG.get("app_state_path", "state.json"))
# Directory probed by the low-disk alert and the backup reminder size check.
DATA_DIR = _resolve_path(_CONFIG.get("data_dir", os.path.dirname(DB_PATH)))

# In-app routing: links on this origin or using the app scheme stay inside herald.
APP_ORIGIN = _CONFIG.get("app_origin") or None
APP_SCHEME = _CONFIG.get("app_scheme", "herald")

_remote = _CONFIG.get("remote", {})
REMOTE = RemoteConfig(
    enabled=bool(_remote.get("enabled", False)),
    base_url=_remote.get("base_url") or None,
    poll_interval_seconds=float(_remote.get("poll_interval_seconds", 120)),
    max_pages=int(_remote.get("max_pages", 10)),
    timeout_seconds=float(_remote.get("timeout_seconds", 10)),
)
API_TOKEN = os.getenv("HERALD_API_TOKEN") or None

_alerts = _CONFIG.get("system_alerts", {})
SYSTEM_ALERTS = SystemAlertsConfig(
    enabled=bool(_alerts.get("enabled", True)),
    poll_interval_seconds=float(_alerts.get("poll_interval_seconds", 5)),
    stale_after_seconds=float(_alerts.get("stale_after_seconds", 600)),
    low_disk_bytes=int(_alerts.get("low_disk_bytes", 500 * 1024 * 1024)),
    status_page_url=_alerts.get("status_page_url") or None,
    outage=_outage(_alerts.get("outage")),
)

LOCAL_TRIGGERS = _polling(_CONFIG.get("local_triggers", {}), 5)

_intro = _CONFIG.get("intro_cards", {})
INTRO_CARDS = _polling(_intro, 10)
INTRO_CARDS_CONFIG: list[dict] = _intro.get("cards", [])

_upgrade = _CONFIG.get("force_upgrade", {})
FORCE_UPGRADE = _polling(_upgrade, 30)
DOWNLOAD_URL = _upgrade.get("download_url") or None

TRACKER = TrackerConfig(prune_after_days=int(_CONFIG.get("tracker", {}).get("prune_after_days", 90)))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
