"""Directory scanning for artifact folders and project roots."""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path

from heretic.core.errors import ScanError

log = logging.getLogger(__name__)


def names_match(name: str, target: str) -> bool:
    """Compare folder names using the host's native case semantics."""
    return os.path.normcase(name) == os.path.normcase(target)


def _open_root(root: Path) -> list[os.DirEntry]:
    """List the root directory, raising ScanError when it is unusable."""
    if not root.is_dir():
        raise ScanError(root)
    try:
        with os.scandir(root) as it:
            return sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise ScanError(root, e) from e


def _list_dir(path: str) -> list[os.DirEntry]:
    try:
        with os.scandir(path) as it:
            return sorted(it, key=lambda e: e.name)
    except OSError as e:
        log.warning("Skipping unreadable directory %s: %s", path, e.strerror or e)
        return []


def _is_real_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def find_matching_directories(root: Path | str, target_name: str) -> list[Path]:
    """Find every directory below *root* named *target_name*.

    The whole tree is enumerated before anything is returned, so callers
    can safely delete the results afterwards. A matched folder is not
    descended into: same-name folders nested inside it go away with it.
    Symlinked directories are leaves and are never matched. Results come
    back in depth-first order with siblings sorted by name.

    Raises:
        ScanError: If *root* does not exist or cannot be read.
    """
    root = Path(root)
    matches: list[Path] = []
    stack: list[list[os.DirEntry]] = [_open_root(root)]

    while stack:
        for entry in stack.pop():
            if not _is_real_dir(entry):
                continue
            if names_match(entry.name, target_name):
                matches.append(Path(entry.path))
            else:
                stack.append(_list_dir(entry.path))

    return sorted(matches, key=lambda p: p.parts)


def discover_projects(search_root: Path | str, pattern: str = "*.csproj") -> list[Path]:
    """Return the directories below *search_root* that hold a project file.

    Raises:
        ScanError: If *search_root* does not exist or cannot be read.
    """
    search_root = Path(search_root)
    found: set[Path] = set()
    stack: list[list[os.DirEntry]] = [_open_root(search_root)]

    while stack:
        for entry in stack.pop():
            try:
                if entry.is_file(follow_symlinks=False):
                    if fnmatch.fnmatch(entry.name, pattern):
                        found.add(Path(entry.path).parent)
                elif entry.is_dir(follow_symlinks=False):
                    stack.append(_list_dir(entry.path))
            except OSError:
                log.debug("Cannot access: %s", entry.path)

    log.info("Found %d project(s) under %s", len(found), search_root)
    return sorted(found)
