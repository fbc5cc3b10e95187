"""JSON-file app state.

The app state holds the small flags sources consult (``has_backup``,
``min_version``, legacy dismissals). Writes replace the file atomically.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

LOGGER = logging.getLogger(__name__)


class JsonStateStore:
    def __init__(self, path: str) -> None:
        self._path = Path(path)

    def get_state(self) -> dict[str, Any]:
        """Return the current state, or an empty dict if the file is missing or invalid."""

        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Could not read app state %s: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            LOGGER.warning("App state %s is not a JSON object; ignoring it", self._path)
            return {}
        return data

    def set_value(self, key: str, value: Any) -> None:
        state = self.get_state()
        state[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self._path.parent), prefix=".state-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(state, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
