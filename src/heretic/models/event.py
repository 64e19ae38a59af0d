"""Purge event dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable


class EventKind(str, Enum):
    """What happened during a purge run."""

    INFO = "info"
    FOUND = "found"
    DELETED = "deleted"
    SKIPPED = "skipped"
    ERROR = "error"
    SUMMARY = "summary"


@dataclass(frozen=True, slots=True)
class PurgeEvent:
    """One occurrence during a purge run, delivered to an event sink as it happens.

    ``root`` and ``target`` identify the project root and folder name being
    processed when the event was produced; both are empty for run-level
    events such as the final summary.
    """

    kind: EventKind
    message: str
    path: Path | None = None
    size_bytes: int | None = None
    root: str = ""
    target: str = ""

    @property
    def is_error(self) -> bool:
        return self.kind is EventKind.ERROR

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "path": str(self.path) if self.path is not None else None,
            "size_bytes": self.size_bytes,
            "root": self.root,
            "target": self.target,
        }


EventSink = Callable[[PurgeEvent], None]
