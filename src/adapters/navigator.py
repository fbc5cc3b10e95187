"""Terminal navigator: in-app paths go to a route callback, links to the browser."""

from __future__ import annotations

import logging
import webbrowser
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)


class TerminalNavigator:
    def __init__(
        self,
        on_route: Optional[Callable[[str], None]] = None,
        open_url: Callable[[str], bool] = webbrowser.open,
    ) -> None:
        self._on_route = on_route
        self._open_url = open_url

    def navigate(self, path: str) -> None:
        if self._on_route is None:
            LOGGER.info("Navigate to %s", path)
            return
        self._on_route(path)

    def open_external(self, url: str) -> None:
        LOGGER.info("Opening %s", url)
        if not self._open_url(url):
            LOGGER.warning("No browser available to open %s", url)
