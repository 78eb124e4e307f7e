"""
SimWatch Directory Watcher.

Watches a single directory (non-recursively) using watchdog.
Requires Python 3.11+.
"""

import asyncio
import threading
import weakref
from collections.abc import Callable
from pathlib import Path
from typing import Any

from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from utils.config import get_settings
from utils.logger import LoggerMixin
from watcher.exceptions import WatchStartError


class DirectoryEventHandler(FileSystemEventHandler, LoggerMixin):
    """
    Forwards structural and content changes to its owning watcher.

    Holds only a weak reference to the watcher so that a watcher dropped
    without ``stop()`` can still be collected and release its observer.
    """

    def __init__(self, watcher: "DirectoryWatcher") -> None:
        super().__init__()
        self._watcher = weakref.ref(watcher)

    def _forward(self, event: FileSystemEvent) -> None:
        watcher = self._watcher()
        if watcher is not None:
            watcher._dispatch(event)

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file/directory creation."""
        self.log.debug("entry_created", path=event.src_path)
        self._forward(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle file/directory deletion."""
        self.log.debug("entry_deleted", path=event.src_path)
        self._forward(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file/directory modification."""
        self._forward(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle file/directory move/rename."""
        self.log.debug("entry_moved", path=event.src_path, dest=event.dest_path)
        self._forward(event)


class DirectoryWatcher(LoggerMixin):
    """
    Watches one directory and invokes a callback when its entries change.

    States are Stopped and Active. ``start()`` on an active watcher and
    ``stop()`` on a stopped one are both no-ops. While active the
    watcher holds exactly one watchdog observer; stopping releases it.

    When bound to an event loop, the callback is delivered on that loop
    instead of on watchdog's observer thread.
    """

    def __init__(
        self,
        path: Path,
        callback: Callable[[], Any] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        join_timeout: float | None = None,
    ) -> None:
        """
        Initialize the directory watcher.

        Args:
            path: Directory to watch
            callback: Called with no arguments on every change
            loop: Event loop to deliver the callback on
            join_timeout: Seconds to wait for the observer thread on stop
        """
        if join_timeout is None:
            join_timeout = get_settings().watcher.join_timeout

        self._path = Path(path)
        self._callback = callback
        self._loop = loop
        self._join_timeout = join_timeout
        self._handler = DirectoryEventHandler(self)
        self._observer: Observer | None = None

    def set_callback(self, callback: Callable[[], Any] | None) -> None:
        """Set or update the change callback."""
        self._callback = callback

    def set_event_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Deliver callbacks on ``loop`` from now on."""
        self._loop = loop

    def start(self) -> None:
        """
        Start watching the directory.

        Raises:
            WatchStartError: If the path is missing, is not a directory,
                or the OS refused the watch registration
        """
        if self._observer is not None:
            return

        if not self._path.exists():
            raise WatchStartError(self._path, "path does not exist")
        if not self._path.is_dir():
            raise WatchStartError(self._path, "not a directory")

        observer = Observer()
        try:
            observer.schedule(self._handler, str(self._path), recursive=False)
            observer.start()
        except OSError as e:
            observer.stop()
            raise WatchStartError(self._path, e.strerror or str(e)) from e

        self._observer = observer
        self.log.debug("directory_watch_started", path=self._path)

    def stop(self, join: bool = True) -> None:
        """
        Stop watching. Safe to call when already stopped.

        The OS watch is released before this returns either way; ``join``
        only controls waiting for watchdog's threads to exit.

        Args:
            join: Wait (up to the join timeout) for the observer thread
        """
        if self._observer is None:
            return
        self._release(join=join)
        self.log.debug("directory_watch_stopped", path=self._path)

    def _release(self, join: bool) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        if join and observer.is_alive() and observer is not threading.current_thread():
            observer.join(timeout=self._join_timeout)

    def _dispatch(self, event: FileSystemEvent) -> None:
        """Called on the observer thread for every relevant event."""
        observer = self._observer
        if observer is None or self._callback is None:
            return

        if self._loop is None:
            self._deliver(observer)
            return

        try:
            self._loop.call_soon_threadsafe(self._deliver, observer)
        except RuntimeError:
            # Loop already closed; nobody is left to notify.
            self.log.debug("callback_dropped_loop_closed", path=self._path)

    def _deliver(self, observer: Observer) -> None:
        # Drop notifications from an observer that has since been stopped.
        if self._observer is not observer or self._callback is None:
            return
        try:
            self._callback()
        except Exception as e:
            self.log.error("watch_callback_failed", path=self._path, error=str(e))

    @property
    def path(self) -> Path:
        """Directory being watched."""
        return self._path

    @property
    def is_active(self) -> bool:
        """Check if the watcher holds a live observer."""
        return self._observer is not None

    def __enter__(self) -> "DirectoryWatcher":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.stop()

    def __del__(self) -> None:
        # Never leak an inotify/FSEvents handle, even without an explicit stop().
        observer = self.__dict__.get("_observer")
        if observer is not None:
            self._release(join=False)

    def __repr__(self) -> str:
        state = "active" if self.is_active else "stopped"
        return f"DirectoryWatcher({str(self._path)!r}, {state})"
