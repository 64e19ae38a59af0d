"""The saved list of project roots and its JSON persistence."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator

from heretic.utils import xdg_config_home

log = logging.getLogger(__name__)

_CONFIG_DIR = "heretic"
_CONFIG_FILE = "config.json"


def path_exists(path: Path | str) -> bool:
    """Check that *path* names an existing directory."""
    try:
        return Path(path).is_dir()
    except OSError:
        return False


class ProjectStore:
    """Loads and saves the ordered project-path list.

    The file holds ``{"project_paths": [...], "last_saved": "<iso>"}``.
    Read and write failures are logged and never raised: a broken config
    file behaves like an empty one.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path

    @property
    def location(self) -> Path:
        return self._path or (xdg_config_home() / _CONFIG_DIR / _CONFIG_FILE)

    def exists(self) -> bool:
        return self.location.exists()

    def load(self) -> list[str]:
        """Return the saved paths that still exist, in saved order."""
        path = self.location
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Failed to load config from %s: %s", path, e)
            return []

        paths = data.get("project_paths") if isinstance(data, dict) else None
        if not isinstance(paths, list):
            return []

        valid = [p for p in paths if isinstance(p, str) and path_exists(p)]
        if len(valid) != len(paths):
            log.info("Dropped %d saved path(s) that no longer exist", len(paths) - len(valid))
        return valid

    def save(self, paths: Iterable[str]) -> None:
        """Write *paths* to disk along with the save time."""
        path = self.location
        data = {
            "project_paths": list(paths),
            "last_saved": datetime.now(timezone.utc).isoformat(),
        }
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            log.warning("Failed to save config to %s: %s", path, e)


class AddOutcome(str, Enum):
    """Result of adding a path to a ProjectList."""

    ADDED = "added"
    EMPTY = "empty"
    INVALID = "invalid"
    DUPLICATE = "duplicate"


class ProjectList:
    """Ordered, duplicate-free list of project roots.

    Every mutation is saved straight away through the store.
    """

    def __init__(self, store: ProjectStore, paths: Iterable[str] | None = None) -> None:
        self._store = store
        self._paths: list[str] = list(dict.fromkeys(paths if paths is not None else store.load()))

    @property
    def store(self) -> ProjectStore:
        return self._store

    @property
    def paths(self) -> list[str]:
        return list(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._paths))

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def add(self, path: str) -> AddOutcome:
        path = path.strip()
        if not path:
            return AddOutcome.EMPTY
        if not path_exists(path):
            return AddOutcome.INVALID
        if path in self._paths:
            return AddOutcome.DUPLICATE
        self._paths.append(path)
        self._save()
        log.info("Added project path: %s", path)
        return AddOutcome.ADDED

    def add_many(self, paths: Iterable[Path | str]) -> tuple[int, int]:
        """Add every existing directory in *paths*.

        Returns:
            (added, skipped) where skipped counts paths already listed.
            Entries that are not directories are ignored.
        """
        added = skipped = 0
        for path in paths:
            path = str(path)
            if not path_exists(path):
                continue
            if path in self._paths:
                skipped += 1
                continue
            self._paths.append(path)
            added += 1
        if added:
            self._save()
        return added, skipped

    def remove(self, paths: Iterable[str]) -> int:
        targets = set(paths)
        before = len(self._paths)
        self._paths = [p for p in self._paths if p not in targets]
        removed = before - len(self._paths)
        if removed:
            self._save()
        return removed

    def clear(self) -> int:
        count = len(self._paths)
        self._paths.clear()
        self._save()
        return count

    def validate(self) -> list[tuple[str, bool]]:
        return [(p, path_exists(p)) for p in self._paths]

    def invalid(self) -> list[str]:
        return [p for p, ok in self.validate() if not ok]

    def remove_invalid(self) -> int:
        return self.remove(self.invalid())

    def _save(self) -> None:
        self._store.save(self._paths)
