"""Exceptions raised by the purge core."""

from __future__ import annotations

from pathlib import Path


class PurgeError(Exception):
    """Base class for purge errors."""


class ConfigurationError(PurgeError):
    """Raised when a run is requested with unusable roots or target names."""


class EngineBusyError(PurgeError):
    """Raised when a run is started while another one is still active."""


class ScanError(PurgeError):
    """Raised when a root directory is missing or cannot be read."""

    def __init__(self, root: Path | str, cause: OSError | None = None) -> None:
        self.root = Path(root)
        self.cause = cause
        reason = (cause.strerror or str(cause)) if cause is not None else "not a directory"
        super().__init__(f"Cannot scan {self.root}: {reason}")


class DeletionError(PurgeError):
    """A matched folder could not be removed."""

    def __init__(self, path: Path | str, cause: OSError) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Cannot delete {self.path}: {cause.strerror or cause}")

    @property
    def reason(self) -> str:
        return self.cause.strerror or str(self.cause)
