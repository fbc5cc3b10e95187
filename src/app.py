"""Application entry point for the herald notification center."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional, Sequence

from art import tprint
from rich.console import Console
from rich.table import Table

import settings
from adapters.json_state import JsonStateStore
from adapters.memory_storage import MemoryStorage
from adapters.navigator import TerminalNavigator
from adapters.notification_formatting import LANE_STYLES, format_plain
from adapters.notifications_api import HttpNotificationsApi
from adapters.sqlite_storage import SQLiteStorage
from core.models import NotificationEntry
from core.ports import DataSourcePort, NavigatorPort, RendererPort, StoragePort
from core.processor import NotificationProcessor
from core.scheduler import AsyncioScheduler
from core.service import NotificationService
from core.tracker import NotificationTracker
from sources.force_upgrade import create_force_upgrade_data_source
from sources.intro_cards import IntroCardsDataSource, build_intro_cards
from sources.local_triggers import LocalTriggerDataSource
from sources.remote import RemoteNotificationsDataSource
from sources.system_alerts import (
    AlertCheck,
    SystemAlertsDataSource,
    low_disk_check,
    outage_check,
    stale_sync_check,
)
from sources.triggers import create_backup_reminder_trigger

NAME = "HERALD"
FONT = "tarty-1"

LOGGER = logging.getLogger("herald")


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    # Longest first so a secret containing another is masked whole.
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(console: bool = True) -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(_collect_redaction_values(config), fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    # The TUI owns the terminal, so console logging is only for headless commands.
    if console and config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/herald.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
            backupCount=int(file_cfg.get("backup_count", 5)),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _directory_size(path: str) -> int:
    total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            try:
                total += os.path.getsize(os.path.join(root, name))
            except OSError:
                continue
    return total


def _build_storage(ephemeral: bool = False) -> StoragePort:
    if ephemeral:
        return MemoryStorage()
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    return storage


def _build_sources(
    tracker: NotificationTracker,
    state: JsonStateStore,
    scheduler: AsyncioScheduler,
    api: Optional[HttpNotificationsApi],
) -> list[DataSourcePort]:
    """Assemble every enabled producer from settings."""

    sources: list[DataSourcePort] = []
    remote: Optional[RemoteNotificationsDataSource] = None
    if api is not None:
        remote = RemoteNotificationsDataSource(
            api,
            scheduler,
            poll_interval_seconds=settings.REMOTE.poll_interval_seconds,
            max_pages=settings.REMOTE.max_pages,
        )
        sources.append(remote)

    alerts = settings.SYSTEM_ALERTS
    if alerts.enabled:
        # Priority order: the first check that holds is the one shown.
        checks: list[AlertCheck] = []
        if remote is not None:
            checks.append(
                stale_sync_check(
                    lambda: remote.last_success_at,
                    lambda: remote.started_at,
                    alerts.stale_after_seconds,
                    status_page_url=alerts.status_page_url,
                )
            )
        checks.append(outage_check(lambda: alerts.outage))
        checks.append(low_disk_check(settings.DATA_DIR, alerts.low_disk_bytes))
        sources.append(SystemAlertsDataSource(checks, scheduler, alerts.poll_interval_seconds))

    if settings.LOCAL_TRIGGERS.enabled:

        async def get_data_size() -> int:
            return await asyncio.to_thread(_directory_size, settings.DATA_DIR)

        backup_reminder = create_backup_reminder_trigger(state.get_state, state.set_value, get_data_size)
        sources.append(
            LocalTriggerDataSource(
                [backup_reminder],
                tracker,
                scheduler,
                settings.LOCAL_TRIGGERS.poll_interval_seconds,
            )
        )

    if settings.INTRO_CARDS.enabled:
        sources.append(
            IntroCardsDataSource(
                build_intro_cards(settings.INTRO_CARDS_CONFIG),
                tracker,
                state.get_state,
                scheduler,
                settings.INTRO_CARDS.poll_interval_seconds,
            )
        )

    if settings.FORCE_UPGRADE.enabled:
        sources.append(
            create_force_upgrade_data_source(
                settings.VERSION,
                state.get_state,
                scheduler,
                settings.FORCE_UPGRADE.poll_interval_seconds,
                download_url=settings.DOWNLOAD_URL,
            )
        )
    return sources


def build_service(
    storage: StoragePort,
    renderer: RendererPort,
    navigator: Optional[NavigatorPort],
    scheduler: AsyncioScheduler,
) -> NotificationService:
    api: Optional[HttpNotificationsApi] = None
    if settings.REMOTE.enabled and settings.REMOTE.base_url:
        api = HttpNotificationsApi(
            settings.REMOTE.base_url,
            token=settings.API_TOKEN,
            timeout=settings.REMOTE.timeout_seconds,
        )
    elif settings.REMOTE.enabled:
        LOGGER.warning("Remote notifications enabled without base_url; skipping")

    tracker = NotificationTracker(storage, api=api)
    state = JsonStateStore(settings.APP_STATE_PATH)
    sources = _build_sources(tracker, state, scheduler, api)
    return NotificationService(
        sources,
        tracker,
        NotificationProcessor(tracker),
        renderer,
        navigator=navigator,
        origin=settings.APP_ORIGIN,
        app_scheme=settings.APP_SCHEME,
    )


def _run() -> None:
    _print_banner()
    _configure_logging(console=False)
    from frontend.app import FeedRenderer, NotificationCenterApp

    app = NotificationCenterApp()
    navigator = TerminalNavigator(on_route=app.show_route)
    # The scheduler binds to Textual's event loop on the first schedule.
    service = build_service(_build_storage(), FeedRenderer(app), navigator, AsyncioScheduler())
    app.attach(service)
    LOGGER.info("Starting notification center")
    app.run()


class _CollectingRenderer:
    def __init__(self) -> None:
        self.active: list[NotificationEntry] = []

    def render(self, active: Sequence[NotificationEntry]) -> None:
        self.active = list(active)


async def _poll_once(ephemeral: bool) -> list[NotificationEntry]:
    renderer = _CollectingRenderer()
    scheduler = AsyncioScheduler()
    service = build_service(_build_storage(ephemeral), renderer, None, scheduler)
    service.initialize()
    try:
        await scheduler.drain()
    finally:
        service.destroy()
    return renderer.active


def _poll(ephemeral: bool) -> None:
    _print_banner()
    _configure_logging()
    active = asyncio.run(_poll_once(ephemeral))

    console = Console()
    if not active:
        console.print("No active notifications.")
        return
    table = Table(title="Active notifications")
    table.add_column("lane")
    table.add_column("id")
    table.add_column("title")
    table.add_column("source")
    for entry in active:
        LOGGER.debug("Active: %s", format_plain(entry))
        table.add_row(
            entry.classification.label(),
            entry.id,
            entry.title or "<untitled>",
            entry.source,
            style=LANE_STYLES[entry.classification.lane],
        )
    console.print(table)


def _prune(days: Optional[int]) -> None:
    _configure_logging()
    older_than = days if days is not None else settings.TRACKER.prune_after_days
    tracker = NotificationTracker(_build_storage())
    removed = tracker.prune(older_than)
    Console().print(f"Removed {removed} acknowledgments older than {older_than} days.")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="herald")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the notification center")
    poll_parser = subparsers.add_parser("poll", help="Poll every source once and print the active set")
    poll_parser.add_argument(
        "--ephemeral",
        action="store_true",
        help="Use in-memory storage so nothing is acknowledged or migrated on disk",
    )
    prune_parser = subparsers.add_parser("prune", help="Delete old acknowledgments")
    prune_parser.add_argument("--days", type=int, default=None, help="Age threshold in days")

    args = parser.parse_args(argv)
    if args.command == "poll":
        _poll(args.ephemeral)
        return
    if args.command == "prune":
        _prune(args.days)
        return
    _run()


if __name__ == "__main__":
    main()
