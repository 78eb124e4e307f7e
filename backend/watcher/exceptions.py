"""
SimWatch Watcher Exceptions.

Requires Python 3.11+.
"""

from pathlib import Path


class WatcherError(Exception):
    """Base class for watcher tree failures."""


class WatchStartError(WatcherError):
    """A directory watch could not be registered."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"cannot watch {path}: {reason}")


class ListingError(WatcherError):
    """The devices root (or a device directory) could not be listed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"cannot list {path}: {reason}")


class RebuildError(WatcherError):
    """The external rebuild callback failed."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"rebuild failed: {cause!r}")
