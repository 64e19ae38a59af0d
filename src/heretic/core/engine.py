"""Purge orchestration engine."""

from __future__ import annotations

import logging
import os
import shutil
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterable

from heretic.core.errors import ConfigurationError, DeletionError, EngineBusyError, ScanError
from heretic.core.scanner import find_matching_directories
from heretic.models.event import EventKind, EventSink, PurgeEvent
from heretic.models.result import PreviewEntry, PurgePreview, PurgeResult, RunStatus
from heretic.utils import dir_size, format_bytes

log = logging.getLogger(__name__)

DEFAULT_TARGETS: tuple[str, ...] = ("bin", "obj")


class EngineState(str, Enum):
    """Lifecycle of a PurgeEngine."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(slots=True)
class _Totals:
    folders_deleted: int = 0
    errors: int = 0
    bytes_freed: int = 0


def normalize_targets(targets: Iterable[str]) -> tuple[str, ...]:
    """Validate target folder names and return them de-duplicated and sorted.

    Raises:
        ConfigurationError: If no names are given, or a name is blank or
            contains a path separator.
    """
    if isinstance(targets, str):
        targets = (targets,)
    names = set()
    for name in targets:
        name = name.strip() if isinstance(name, str) else ""
        if not name or name in (".", ".."):
            raise ConfigurationError("Target folder names must not be empty")
        if "/" in name or (os.sep != "/" and os.sep in name):
            raise ConfigurationError(f"Target folder name must not contain a path separator: {name!r}")
        names.add(name)
    if not names:
        raise ConfigurationError("Select at least one folder type to purge")
    return tuple(sorted(names))


def normalize_roots(roots: Iterable[Path | str]) -> tuple[str, ...]:
    if isinstance(roots, (str, Path)):
        roots = (roots,)
    root_list = tuple(str(r) for r in roots)
    if not root_list:
        raise ConfigurationError("No project paths to purge")
    return root_list


def _relative(path: Path, root: str) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


class PurgeEngine:
    """Scans project roots for artifact folders and deletes them.

    Folders are processed one at a time. Per-folder failures are counted
    and reported through the event sink but never stop the run; only a
    cancellation request ends a run early.

    An engine runs one purge at a time. It can be reused once a run has
    finished, and ``state`` reports how the most recent run ended.
    """

    def __init__(self) -> None:
        self._state = EngineState.IDLE
        self._lock = threading.Lock()

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is EngineState.RUNNING

    def run(
        self,
        roots: Iterable[Path | str],
        targets: Iterable[str] = DEFAULT_TARGETS,
        on_event: EventSink | None = None,
        cancel: threading.Event | None = None,
    ) -> PurgeResult:
        """Purge every target folder below every root.

        Args:
            roots: Project roots, processed in the given order.
            targets: Folder names to delete, processed in sorted order.
            on_event: Optional sink receiving each PurgeEvent as it occurs.
            cancel: Optional event; once set, the run stops at the next
                scan or deletion boundary and ends as ABORTED.

        Returns:
            The final PurgeResult.

        Raises:
            ConfigurationError: If roots or targets are empty or invalid.
                The engine ends in ABORTED without entering RUNNING.
            EngineBusyError: If another run is active on this engine.
        """
        try:
            root_list = normalize_roots(roots)
            names = normalize_targets(targets)
        except ConfigurationError:
            # A rejected request never reaches RUNNING; leave an active run alone.
            if not self.is_running:
                self._state = EngineState.ABORTED
            raise

        if not self._lock.acquire(blocking=False):
            raise EngineBusyError("A purge is already running on this engine")
        try:
            self._state = EngineState.RUNNING
            result = self._run(root_list, names, on_event, cancel)
            self._state = EngineState.COMPLETED if result.completed else EngineState.ABORTED
            return result
        except BaseException:
            self._state = EngineState.ABORTED
            raise
        finally:
            self._lock.release()

    def _run(
        self,
        roots: tuple[str, ...],
        names: tuple[str, ...],
        on_event: EventSink | None,
        cancel: threading.Event | None,
    ) -> PurgeResult:
        started = datetime.now(timezone.utc)
        totals = _Totals()
        emit = self._emitter(on_event)
        log.info("Purging %s from %d project path(s)", ", ".join(names), len(roots))

        aborted = False
        for index, root in enumerate(roots, 1):
            emit(PurgeEvent(EventKind.INFO, f"Project {index}/{len(roots)}: {root}", root=root))
            for name in names:
                if not self._purge_target(root, name, totals, emit, cancel):
                    aborted = True
                    break
            if aborted:
                break

        if aborted:
            emit(PurgeEvent(EventKind.SKIPPED, "Purge cancelled; remaining folders were not processed"))

        result = PurgeResult(
            status=RunStatus.ABORTED if aborted else RunStatus.COMPLETED,
            folders_deleted=totals.folders_deleted,
            errors=totals.errors,
            bytes_freed=totals.bytes_freed,
            roots=roots,
            targets=names,
            started_at=started,
            finished_at=datetime.now(timezone.utc),
        )
        emit(PurgeEvent(EventKind.SUMMARY, result.summary, size_bytes=result.bytes_freed))
        log.info(result.summary)
        return result

    def _purge_target(
        self,
        root: str,
        name: str,
        totals: _Totals,
        emit: EventSink,
        cancel: threading.Event | None,
    ) -> bool:
        """Scan one root for one folder name and delete the matches.

        Returns False if the run was cancelled.
        """
        if cancel is not None and cancel.is_set():
            return False

        emit(PurgeEvent(EventKind.FOUND, f"Scanning for '{name}' folders", root=root, target=name))
        try:
            folders = find_matching_directories(root, name)
        except ScanError as e:
            totals.errors += 1
            log.warning("%s", e)
            emit(
                PurgeEvent(
                    EventKind.ERROR,
                    f"Error scanning '{name}': {e}",
                    path=e.root,
                    root=root,
                    target=name,
                )
            )
            return True

        if not folders:
            emit(PurgeEvent(EventKind.INFO, f"No '{name}' folders found", root=root, target=name))
            return True

        emit(PurgeEvent(EventKind.INFO, f"Found {len(folders)} '{name}' folder(s)", root=root, target=name))

        for folder in folders:
            if cancel is not None and cancel.is_set():
                return False

            size = dir_size(folder)
            rel = _relative(folder, root)
            try:
                shutil.rmtree(folder)
            except OSError as exc:
                err = DeletionError(folder, exc)
                totals.errors += 1
                log.warning("%s", err)
                emit(
                    PurgeEvent(
                        EventKind.ERROR,
                        f"Failed: {rel} - {err.reason}",
                        path=folder,
                        root=root,
                        target=name,
                    )
                )
                continue

            totals.folders_deleted += 1
            totals.bytes_freed += size
            log.debug("Deleted %s (%d bytes)", folder, size)
            emit(
                PurgeEvent(
                    EventKind.DELETED,
                    f"Deleted: {rel} ({format_bytes(size)})",
                    path=folder,
                    size_bytes=size,
                    root=root,
                    target=name,
                )
            )

            if cancel is not None and cancel.is_set():
                return False

        return True

    def preview(
        self,
        roots: Iterable[Path | str],
        targets: Iterable[str] = DEFAULT_TARGETS,
    ) -> PurgePreview:
        """Report what a run would delete, without deleting anything.

        A folder nested inside another matched folder is counted once,
        under the outer folder, since deleting the outer one removes it.
        """
        root_list = normalize_roots(roots)
        names = normalize_targets(targets)

        entries: list[PreviewEntry] = []
        scan_errors = 0
        for root in root_list:
            found: list[tuple[Path, str]] = []
            for name in names:
                try:
                    found.extend((p, name) for p in find_matching_directories(root, name))
                except ScanError as e:
                    log.warning("%s", e)
                    scan_errors += 1

            kept: list[Path] = []
            for path, name in sorted(found, key=lambda item: item[0].parts):
                if any(path.is_relative_to(outer) for outer in kept):
                    continue
                kept.append(path)
                entries.append(PreviewEntry(path=path, target=name, size_bytes=dir_size(path)))

        counts = {name: sum(1 for e in entries if e.target == name) for name in names}
        return PurgePreview(entries=tuple(entries), scan_errors=scan_errors, targets=names, counts=counts)

    @staticmethod
    def _emitter(on_event: EventSink | None) -> EventSink:
        """Wrap a sink so that a failing consumer cannot break the run."""

        def emit(event: PurgeEvent) -> None:
            if on_event is None:
                return
            try:
                on_event(event)
            except Exception:
                log.exception("Event sink failed on %s event", event.kind.value)

        return emit


def logging_sink(logger: logging.Logger) -> EventSink:
    """Build an event sink that writes each event to *logger*."""

    def sink(event: PurgeEvent) -> None:
        if event.kind is EventKind.ERROR:
            logger.warning(event.message)
        elif event.kind in (EventKind.DELETED, EventKind.SUMMARY, EventKind.SKIPPED):
            logger.info(event.message)
        else:
            logger.debug(event.message)

    return sink
