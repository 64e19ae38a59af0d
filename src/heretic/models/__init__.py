"""Heretic data models."""

from heretic.models.event import EventKind, EventSink, PurgeEvent
from heretic.models.result import PreviewEntry, PurgePreview, PurgeResult, RunStatus

__all__ = [
    "EventKind",
    "EventSink",
    "PreviewEntry",
    "PurgeEvent",
    "PurgePreview",
    "PurgeResult",
    "RunStatus",
]
