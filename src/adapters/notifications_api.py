"""HTTP adapter for the remote notification service.

Endpoints:
- POST /v1/session                       -> {"token": "..."}
- GET  /v1/notifications?cursor=...      -> {"notifications": [...], "next_cursor": ...}
- POST /v1/notifications/{id}/ack        -> 204
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Optional

from adapters.notification_mapping import decode_page
from core.ports import NotificationPage
from core.shared_future import SharedFuture

LOGGER = logging.getLogger(__name__)


class NotificationsApiError(RuntimeError):
    """Raised for transport failures and non-2xx responses."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class HttpNotificationsApi:
    """NotificationsApiPort over plain HTTP/JSON."""

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10.0) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._static_token = token
        # Concurrent first calls share a single session bootstrap.
        self._session: SharedFuture[str] = SharedFuture()

    def _request(self, method: str, path: str, token: Optional[str], body: Optional[dict] = None) -> Any:
        url = f"{self._base_url}{path}"
        data = json.dumps(body).encode("utf-8") if body is not None else None
        request = urllib.request.Request(url, data=data, method=method)
        request.add_header("Accept", "application/json")
        if data is not None:
            request.add_header("Content-Type", "application/json")
        if token:
            request.add_header("Authorization", f"Bearer {token}")
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                raw = response.read()
        except urllib.error.HTTPError as e:
            detail = e.read().decode("utf-8", errors="replace")
            raise NotificationsApiError(f"{method} {path} failed with {e.code}: {detail}", status=e.code) from e
        except (urllib.error.URLError, OSError) as e:
            raise NotificationsApiError(f"{method} {path} failed: {e}") from e
        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as e:
            raise NotificationsApiError(f"{method} {path} returned invalid JSON") from e

    async def _call(self, method: str, path: str, body: Optional[dict] = None) -> Any:
        token = await self._token()
        # urllib is blocking; keep it off the event loop.
        return await asyncio.to_thread(self._request, method, path, token, body)

    async def _token(self) -> Optional[str]:
        if self._static_token:
            return self._static_token
        return await self._session.get(self._bootstrap_session)

    async def _bootstrap_session(self) -> str:
        LOGGER.debug("Opening notification service session")
        body = await asyncio.to_thread(self._request, "POST", "/v1/session", None, {})
        token = (body or {}).get("token") if isinstance(body, dict) else None
        if not token:
            raise NotificationsApiError("Session response did not include a token")
        return str(token)

    async def get_notifications(self, cursor: Optional[str] = None) -> NotificationPage:
        path = "/v1/notifications"
        if cursor:
            path = f"{path}?{urllib.parse.urlencode({'cursor': cursor})}"
        body = await self._call("GET", path)
        if not isinstance(body, dict):
            raise NotificationsApiError("Notification page was not a JSON object")
        entries, next_cursor = decode_page(body)
        return NotificationPage(entries=entries, next_cursor=next_cursor)

    async def ack_notification(self, notification_id: str) -> None:
        quoted = urllib.parse.quote(notification_id, safe="")
        await self._call("POST", f"/v1/notifications/{quoted}/ack", {})
