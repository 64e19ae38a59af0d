"""Shared utility functions."""

from __future__ import annotations

import logging
import os
from pathlib import Path

log = logging.getLogger(__name__)

_UNITS = ("B", "KB", "MB", "GB", "TB")


def xdg_config_home() -> Path:
    """Return XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def xdg_data_home() -> Path:
    """Return XDG_DATA_HOME, defaulting to ~/.local/share."""
    return Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))


def dir_info(path: Path | str) -> tuple[int, int]:
    """Calculate total size and file count of a directory tree.

    Symlinks are never followed. Unreadable entries are skipped, so the
    result is an estimate: a partial sum when part of the tree could not
    be read, ``(0, 0)`` when nothing could.

    Returns:
        (total_bytes, file_count) tuple.
    """
    total = 0
    count = 0
    stack: list[Path | str] = [path]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                for entry in it:
                    try:
                        if entry.is_file(follow_symlinks=False):
                            total += entry.stat(follow_symlinks=False).st_size
                            count += 1
                        elif entry.is_dir(follow_symlinks=False):
                            stack.append(entry.path)
                    except OSError:
                        log.debug("Cannot stat: %s", entry.path)
        except OSError:
            log.debug("Cannot read directory: %s", current)
    return total, count


def dir_size(path: Path | str) -> int:
    """Best-effort total size of the regular files below *path*."""
    return dir_info(path)[0]


def format_bytes(size_bytes: int) -> str:
    """Convert a byte count to a 1024-based human-readable string.

    Picks the largest unit in which the value is at least 1 and keeps at
    most two decimals: ``1536 -> "1.5 KB"``, ``1073741824 -> "1 GB"``.
    """
    if size_bytes < 0:
        return f"-{format_bytes(-size_bytes)}"

    value = float(size_bytes)
    order = 0
    while value >= 1024 and order < len(_UNITS) - 1:
        value /= 1024
        order += 1

    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_UNITS[order]}"


def format_relative_time(iso_timestamp: str) -> str:
    """Format an ISO timestamp as relative time ('2 hours ago')."""
    from datetime import datetime, timezone

    dt = datetime.fromisoformat(iso_timestamp)
    seconds = int((datetime.now(timezone.utc) - dt).total_seconds())

    if seconds < 60:
        return "just now"
    if seconds < 3600:
        m = seconds // 60
        return f"{m} minute{'s' if m != 1 else ''} ago"
    if seconds < 86400:
        h = seconds // 3600
        return f"{h} hour{'s' if h != 1 else ''} ago"
    d = seconds // 86400
    if d < 30:
        return f"{d} day{'s' if d != 1 else ''} ago"
    mo = d // 30
    if mo < 12:
        return f"{mo} month{'s' if mo != 1 else ''} ago"
    y = d // 365
    return f"{y} year{'s' if y != 1 else ''} ago"


def format_elapsed(seconds: float) -> str:
    """Format an elapsed time as a human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds) // 60
    secs = seconds - minutes * 60
    return f"{minutes}m {secs:.0f}s"
