"""JSON file storage for purge history."""

from __future__ import annotations

import json
import logging
from typing import Any

from heretic.utils import xdg_data_home

log = logging.getLogger(__name__)

_DATA_DIR = xdg_data_home() / "heretic"

HISTORY_FILE = _DATA_DIR / "history.json"


def _ensure_data_dir() -> None:
    """Create the data directory if it doesn't exist."""
    _DATA_DIR.mkdir(parents=True, exist_ok=True)


def load_history() -> dict[str, Any]:
    """Load the history file, returning empty structure if missing."""
    if not HISTORY_FILE.exists():
        return {"sessions": []}
    try:
        with open(HISTORY_FILE, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        log.exception("Failed to load history file: %s", HISTORY_FILE)
        return {"sessions": []}
    if not isinstance(data, dict) or not isinstance(data.get("sessions"), list):
        log.warning("Ignoring malformed history file: %s", HISTORY_FILE)
        return {"sessions": []}
    return data


def save_history(data: dict[str, Any]) -> None:
    """Write the history data to disk."""
    try:
        _ensure_data_dir()
        with open(HISTORY_FILE, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
    except OSError:
        log.exception("Failed to save history file: %s", HISTORY_FILE)
