"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core and the sources expect so the app layer can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PollingConfig:
    """Poll cadence for one data source."""

    enabled: bool
    poll_interval_seconds: float


@dataclass(frozen=True)
class RemoteConfig:
    """Remote notification service settings."""

    enabled: bool
    base_url: Optional[str]
    poll_interval_seconds: float
    max_pages: int
    timeout_seconds: float


@dataclass(frozen=True)
class OutageNotice:
    """A manually configured outage banner."""

    service: str
    message: str
    help_url: Optional[str] = None


@dataclass(frozen=True)
class SystemAlertsConfig:
    """Thresholds for the derived system health alerts."""

    enabled: bool
    poll_interval_seconds: float
    stale_after_seconds: float
    low_disk_bytes: int
    status_page_url: Optional[str]
    outage: Optional[OutageNotice]


@dataclass(frozen=True)
class TrackerConfig:
    """Acknowledgment store maintenance settings."""

    prune_after_days: int
