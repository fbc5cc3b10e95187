"""Helpers for working with notification identities.

Identities starting with ``local:`` are minted on this machine and are never
acknowledged against the remote service. ``local:session:`` identities are
additionally scoped to the running process.
"""

from __future__ import annotations

LOCAL_PREFIX = "local:"
SESSION_PREFIX = "local:session:"


def _join(parts: tuple[object, ...]) -> str:
    cleaned = [str(part).strip() for part in parts]
    if not cleaned or any(not part for part in cleaned):
        raise ValueError("identity parts must be non-empty")
    return ":".join(cleaned)


def is_local_only(notification_id: str) -> bool:
    """Return True when the identity must never reach the remote ack endpoint."""

    return notification_id.startswith(LOCAL_PREFIX)


def is_session_scoped(notification_id: str) -> bool:
    return notification_id.startswith(SESSION_PREFIX)


def build_local_id(*parts: object) -> str:
    """Return ``local:<parts...>``."""

    return f"{LOCAL_PREFIX}{_join(parts)}"


def build_session_id(*parts: object) -> str:
    """Return ``local:session:<parts...>``."""

    return f"{SESSION_PREFIX}{_join(parts)}"


def build_occurrence_id(kind: str, occurrence: int, *parts: object) -> str:
    """Mint a session identity for one occurrence of a recurring alert.

    The occurrence number is always the last segment so a dismissed
    occurrence keeps its identity while the next one gets a fresh one.
    """

    if occurrence < 0:
        raise ValueError("occurrence must be non-negative")
    return build_session_id(kind, *parts, occurrence)
