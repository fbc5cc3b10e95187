"""Shared constants for the Textual UI."""

from __future__ import annotations

HERALD_GOLD = "#E8B339"
# Delay before reporting a failed render back to the service.
RENDER_FAILURE_DELAY_SECONDS = 0.0
