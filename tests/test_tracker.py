"""Tests for the tracker module."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from heretic.core.tracker import Tracker
from heretic.models.result import PurgeResult, RunStatus

pytestmark = pytest.mark.usefixtures("isolate_storage")


def _result(folders=1, freed=100, errors=0, status=RunStatus.COMPLETED, finished=None) -> PurgeResult:
    finished = finished or datetime.now(timezone.utc)
    return PurgeResult(
        status=status,
        folders_deleted=folders,
        errors=errors,
        bytes_freed=freed,
        roots=("/src/App",),
        targets=("bin", "obj"),
        started_at=finished - timedelta(seconds=2),
        finished_at=finished,
    )


class TestTracker:
    def test_record(self, isolate_storage):
        tracker = Tracker()
        tracker.record(_result(folders=2, freed=5000, errors=1))

        history = json.loads(isolate_storage.read_text())
        assert len(history["sessions"]) == 1
        session = history["sessions"][0]
        assert session["bytes_freed"] == 5000
        assert session["folders_deleted"] == 2
        assert session["errors"] == 1
        assert session["status"] == "completed"
        assert session["roots"] == ["/src/App"]
        assert session["targets"] == ["bin", "obj"]

    def test_multiple_sessions(self, isolate_storage):
        Tracker().record(_result(freed=100))
        Tracker().record(_result(freed=200))

        history = json.loads(isolate_storage.read_text())
        assert len(history["sessions"]) == 2
        assert Tracker().get_stats("all")["lifetime_bytes_freed"] == 300

    def test_last_purge_time(self):
        tracker = Tracker()
        assert tracker.get_last_purge_time() is None
        finished = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        tracker.record(_result(finished=finished))
        assert tracker.get_last_purge_time() == finished.isoformat()

    def test_corrupt_history_is_replaced(self, isolate_storage):
        isolate_storage.write_text("{not json")
        Tracker().record(_result(freed=42))
        history = json.loads(isolate_storage.read_text())
        assert [s["bytes_freed"] for s in history["sessions"]] == [42]

    def test_malformed_history_is_ignored(self, isolate_storage):
        isolate_storage.write_text(json.dumps({"sessions": "oops"}))
        assert Tracker().get_stats()["session_count"] == 0


class TestTrackerStats:
    def test_all(self):
        tracker = Tracker()
        tracker.record(_result(folders=3, freed=999, errors=2))
        tracker.record(_result(folders=1, freed=1, status=RunStatus.ABORTED))

        stats = tracker.get_stats("all")
        assert stats["period"] == "all"
        assert stats["bytes_freed"] == 1000
        assert stats["folders_deleted"] == 4
        assert stats["errors"] == 2
        assert stats["session_count"] == 2
        assert stats["aborted_count"] == 1
        assert stats["lifetime_bytes_freed"] == 1000

    def test_period_filter(self):
        tracker = Tracker()
        now = datetime.now(timezone.utc)
        tracker.record(_result(freed=10, finished=now - timedelta(days=60)))
        tracker.record(_result(freed=20, finished=now - timedelta(days=20)))
        tracker.record(_result(freed=30, finished=now))

        assert tracker.get_stats("today")["bytes_freed"] == 30
        assert tracker.get_stats("week")["bytes_freed"] == 30
        assert tracker.get_stats("month")["bytes_freed"] == 50
        month = tracker.get_stats("month")
        assert month["session_count"] == 2
        assert month["lifetime_bytes_freed"] == 60

    def test_empty(self):
        stats = Tracker().get_stats("week")
        assert stats["bytes_freed"] == 0
        assert stats["session_count"] == 0
