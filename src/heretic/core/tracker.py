"""Tracks freed space across purge runs."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from heretic import storage
from heretic.models.result import PurgeResult

log = logging.getLogger(__name__)


class Tracker:
    """Records purge results and aggregates them into statistics."""

    def record(self, result: PurgeResult) -> None:
        """Append a finished run to the history file."""
        history = storage.load_history()
        history["sessions"].append(self._build_session_entry(result))
        storage.save_history(history)
        log.info(
            "Saved purge session: %d folder(s), %d bytes freed",
            result.folders_deleted,
            result.bytes_freed,
        )

    def get_last_purge_time(self) -> str | None:
        """Return ISO timestamp of the most recent purge, or None."""
        sessions = storage.load_history().get("sessions", [])
        return sessions[-1]["timestamp"] if sessions else None

    def get_stats(self, period: str = "all") -> dict[str, Any]:
        """Get aggregated statistics for a time period.

        Args:
            period: One of 'today', 'week', 'month', 'all'.
        """
        all_sessions = storage.load_history().get("sessions", [])

        match period:
            case "today":
                cutoff = _start_of_today()
            case "week":
                cutoff = _start_of_today() - timedelta(days=7)
            case "month":
                cutoff = _start_of_today() - timedelta(days=30)
            case _:
                cutoff = None

        if cutoff is not None:
            sessions = [s for s in all_sessions if datetime.fromisoformat(s["timestamp"]) >= cutoff]
        else:
            sessions = all_sessions

        return {
            "period": period,
            "bytes_freed": sum(s.get("bytes_freed", 0) for s in sessions),
            "folders_deleted": sum(s.get("folders_deleted", 0) for s in sessions),
            "errors": sum(s.get("errors", 0) for s in sessions),
            "session_count": len(sessions),
            "aborted_count": sum(1 for s in sessions if s.get("status") == "aborted"),
            "lifetime_bytes_freed": sum(s.get("bytes_freed", 0) for s in all_sessions),
        }

    @staticmethod
    def _build_session_entry(result: PurgeResult) -> dict[str, Any]:
        finished = result.finished_at or datetime.now(timezone.utc)
        return {
            "timestamp": finished.isoformat(),
            "status": result.status.value,
            "folders_deleted": result.folders_deleted,
            "errors": result.errors,
            "bytes_freed": result.bytes_freed,
            "roots": list(result.roots),
            "targets": list(result.targets),
        }


def _start_of_today() -> datetime:
    """Return the start of the current UTC day."""
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)
