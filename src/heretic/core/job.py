"""Background purge runs with queued event delivery."""

from __future__ import annotations

import logging
import queue
import threading
from pathlib import Path
from typing import Iterable

from heretic.core.engine import DEFAULT_TARGETS, PurgeEngine, normalize_roots, normalize_targets
from heretic.models.event import EventSink, PurgeEvent
from heretic.models.result import PurgeResult
from heretic.utils import format_bytes

log = logging.getLogger(__name__)

_STOP = object()


class PurgeJob:
    """Runs a purge on a worker thread and streams its events to a sink.

    The engine pushes events onto a queue; a second thread drains the
    queue and calls the sink, so a slow consumer (a terminal, a log file)
    never blocks the purge itself and events arrive in emission order.
    """

    def __init__(
        self,
        engine: PurgeEngine,
        roots: Iterable[Path | str],
        targets: Iterable[str] = DEFAULT_TARGETS,
        on_event: EventSink | None = None,
    ) -> None:
        self._engine = engine
        self._roots = normalize_roots(roots)
        self._targets = normalize_targets(targets)
        self._on_event = on_event
        self._cancel = threading.Event()
        self._done = threading.Event()
        self._queue: queue.Queue[PurgeEvent | object] = queue.Queue()
        self._result: PurgeResult | None = None
        self._error: Exception | None = None
        self._worker = threading.Thread(target=self._work, name="heretic-purge", daemon=True)
        self._consumer = threading.Thread(target=self._consume, name="heretic-events", daemon=True)

    @classmethod
    def start(
        cls,
        engine: PurgeEngine,
        roots: Iterable[Path | str],
        targets: Iterable[str] = DEFAULT_TARGETS,
        on_event: EventSink | None = None,
    ) -> PurgeJob:
        """Validate the request and start purging in the background.

        Raises:
            ConfigurationError: If roots or targets are empty or invalid.
        """
        job = cls(engine, roots, targets, on_event)
        job._consumer.start()
        job._worker.start()
        return job

    @property
    def done(self) -> bool:
        """True once the run has ended and every event has been delivered."""
        return self._done.is_set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def result(self) -> PurgeResult | None:
        return self._result

    def cancel(self) -> None:
        """Ask the engine to stop at its next scan or deletion boundary."""
        if not self._cancel.is_set():
            log.info("Cancellation requested")
        self._cancel.set()

    def wait(self, timeout: float | None = None) -> PurgeResult | None:
        """Block until the run ends and its events are delivered.

        Returns None if *timeout* expires first. Re-raises the error that
        prevented the run from starting, if any.
        """
        if not self._done.wait(timeout):
            return None
        if self._error is not None:
            raise self._error
        return self._result

    def completion_message(self) -> str:
        result = self._result
        if result is None or not result.completed:
            return "Purge cancelled or incomplete"
        return (
            f"Purge complete! Deleted {result.folders_deleted} folders "
            f"({format_bytes(result.bytes_freed)} freed), {result.errors} errors"
        )

    def _work(self) -> None:
        try:
            self._result = self._engine.run(
                self._roots,
                self._targets,
                on_event=self._queue.put,
                cancel=self._cancel,
            )
        except Exception as e:
            log.warning("Purge could not run: %s", e)
            self._error = e
        finally:
            self._queue.put(_STOP)

    def _consume(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            if self._on_event is None:
                continue
            try:
                self._on_event(item)
            except Exception:
                log.exception("Event sink failed")
        self._done.set()
