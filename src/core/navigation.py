"""Click target routing.

Same-origin targets go to in-app navigation; everything else, including
targets that do not parse, is opened externally.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional
from urllib.parse import urljoin, urlsplit

from core.ports import NavigatorPort

LOGGER = logging.getLogger(__name__)


class RouteKind(str, Enum):
    IN_APP = "in_app"
    EXTERNAL = "external"


def classify_target(url: str, origin: Optional[str] = None, app_scheme: str = "herald") -> tuple[RouteKind, str]:
    """Return where a click target should go and the value to hand over.

    Raises ValueError when the target cannot be parsed.
    """

    target = url.strip()
    if not target:
        raise ValueError("empty click target")

    if target.startswith("/") and not target.startswith("//"):
        return RouteKind.IN_APP, target

    app_prefix = f"{app_scheme}://"
    if app_scheme and target.lower().startswith(app_prefix):
        path = target[len(app_prefix):].lstrip("/")
        return RouteKind.IN_APP, f"/{path}"

    if origin:
        parsed = urlsplit(urljoin(origin, target))
        origin_parts = urlsplit(origin)
        same_origin = (
            parsed.scheme == origin_parts.scheme
            and parsed.hostname == origin_parts.hostname
            and parsed.port == origin_parts.port
        )
        if same_origin:
            path = parsed.path or "/"
            if parsed.query:
                path = f"{path}?{parsed.query}"
            if parsed.fragment:
                path = f"{path}#{parsed.fragment}"
            return RouteKind.IN_APP, path
    else:
        parsed = urlsplit(target)
        # Touch the port so malformed ones ("http://host:abc") raise here.
        parsed.port

    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"not an absolute URL: {target}")
    return RouteKind.EXTERNAL, target


def route_click(
    url: str,
    navigator: NavigatorPort,
    origin: Optional[str] = None,
    app_scheme: str = "herald",
) -> RouteKind:
    """Route a click target through the navigator. Never raises."""

    try:
        kind, value = classify_target(url, origin=origin, app_scheme=app_scheme)
    except ValueError as exc:
        LOGGER.warning("Failed to parse click target %r: %s", url, exc)
        kind, value = RouteKind.EXTERNAL, url

    try:
        if kind is RouteKind.IN_APP:
            navigator.navigate(value)
        else:
            navigator.open_external(value)
    except Exception:
        LOGGER.exception("Navigation failed for %r", url)
    return kind
