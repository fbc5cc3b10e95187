"""Core domain models.

These dataclasses are shared across the core, sources and adapters so that no
layer depends on the remote service schema or on the TUI widgets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional


class Lane(str, Enum):
    """Presentation lanes. The set is closed; renderers must cover all of them."""

    MODAL = "modal"
    INLINE_BANNER = "inline_banner"
    SYSTEM_BANNER = "system_banner"
    INTRO_CARD = "intro_card"
    FORCE_UPGRADE = "force_upgrade"
    LOCAL_TRIGGER = "local_trigger"


@dataclass(frozen=True)
class Classification:
    """Tagged lane for an entry. Only LOCAL_TRIGGER carries a kind."""

    lane: Lane
    kind: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.lane, Lane):
            raise ValueError(f"Unsupported lane: {self.lane!r}")
        if self.lane is Lane.LOCAL_TRIGGER and not self.kind:
            raise ValueError("local_trigger classification requires a kind")
        if self.lane is not Lane.LOCAL_TRIGGER and self.kind is not None:
            raise ValueError(f"{self.lane.value} classification does not take a kind")

    @classmethod
    def local_trigger(cls, kind: str) -> "Classification":
        return cls(Lane.LOCAL_TRIGGER, kind)

    def label(self) -> str:
        if self.kind:
            return f"{self.lane.value}({self.kind})"
        return self.lane.value


MODAL = Classification(Lane.MODAL)
INLINE_BANNER = Classification(Lane.INLINE_BANNER)
SYSTEM_BANNER = Classification(Lane.SYSTEM_BANNER)
INTRO_CARD = Classification(Lane.INTRO_CARD)
FORCE_UPGRADE = Classification(Lane.FORCE_UPGRADE)


@dataclass(frozen=True, eq=True)
class NotificationEntry:
    """One notification a source wants surfaced.

    Equality compares every field, which is what the processor uses to decide
    whether the active set actually changed between two ingests.
    """

    id: str
    classification: Classification
    payload: Mapping[str, Any] = field(default_factory=dict)
    source: str = ""

    def with_source(self, source: str) -> "NotificationEntry":
        if source == self.source:
            return self
        return NotificationEntry(
            id=self.id,
            classification=self.classification,
            payload=self.payload,
            source=source,
        )

    @property
    def title(self) -> str:
        return str(self.payload.get("title") or "")


@dataclass(frozen=True)
class TrackerRecord:
    """Persisted acknowledgment for one notification identity."""

    notification_id: str
    acked_at_ms: Optional[int]
    metadata: Mapping[str, Any] = field(default_factory=dict)


class ClickAction(str, Enum):
    DISMISS = "dismiss"
    ACK = "ack"
    EXTERNAL_LINK = "external_link"


@dataclass(frozen=True)
class ClickTarget:
    """What a user interaction asked for: a link and/or a set of actions."""

    url: Optional[str] = None
    actions: tuple[ClickAction, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ClickTarget":
        """Build a target from the `link` / `actions` keys of an entry payload."""

        url = payload.get("link") or None
        actions: list[ClickAction] = []
        for raw in payload.get("actions") or ():
            try:
                actions.append(ClickAction(str(raw).lower()))
            except ValueError:
                continue
        return cls(url=str(url) if url else None, actions=tuple(actions))

    def acknowledges(self) -> bool:
        # No explicit action list behaves like a plain "got it" click.
        return not self.actions or ClickAction.ACK in self.actions

    def dismisses(self) -> bool:
        return not self.actions or ClickAction.DISMISS in self.actions or ClickAction.ACK in self.actions
