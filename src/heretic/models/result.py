"""Purge and preview result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from heretic.utils import format_bytes


class RunStatus(str, Enum):
    """Terminal status of a purge run."""

    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class PurgeResult:
    """Final totals of a purge run.

    ``bytes_freed`` is the sum of the sizes measured just before each
    successful deletion, so it is an estimate rather than an exact count
    of reclaimed disk blocks.
    """

    status: RunStatus
    folders_deleted: int = 0
    errors: int = 0
    bytes_freed: int = 0
    roots: tuple[str, ...] = ()
    targets: tuple[str, ...] = ()
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def completed(self) -> bool:
        return self.status is RunStatus.COMPLETED

    @property
    def succeeded(self) -> bool:
        """Completed without a single per-item error."""
        return self.completed and self.errors == 0

    @property
    def elapsed(self) -> float:
        """Wall-clock duration of the run in seconds."""
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def summary(self) -> str:
        verb = "complete" if self.completed else "cancelled"
        return (
            f"Purge {verb}: {self.folders_deleted} folder(s) deleted, "
            f"{self.errors} error(s), {format_bytes(self.bytes_freed)} freed"
        )

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "folders_deleted": self.folders_deleted,
            "errors": self.errors,
            "bytes_freed": self.bytes_freed,
            "roots": list(self.roots),
            "targets": list(self.targets),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


@dataclass(frozen=True, slots=True)
class PreviewEntry:
    """Single matched folder found by a preview scan."""

    path: Path
    target: str
    size_bytes: int


@dataclass(frozen=True, slots=True)
class PurgePreview:
    """What a purge run would delete, without deleting anything."""

    entries: tuple[PreviewEntry, ...] = ()
    scan_errors: int = 0
    targets: tuple[str, ...] = ()
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def total_folders(self) -> int:
        return len(self.entries)

    @property
    def total_bytes(self) -> int:
        return sum(e.size_bytes for e in self.entries)

    def to_dict(self) -> dict:
        return {
            "targets": list(self.targets),
            "counts": dict(self.counts),
            "total_folders": self.total_folders,
            "total_bytes": self.total_bytes,
            "scan_errors": self.scan_errors,
            "entries": [
                {"path": str(e.path), "target": e.target, "size_bytes": e.size_bytes}
                for e in self.entries
            ],
        }
