"""
SimWatch Watcher Tree Manager.

Keeps one watcher on the devices root and one per device directory,
and turns their notifications into a single debounced rebuild.
Requires Python 3.11+.
"""

import asyncio
import inspect
from collections.abc import Callable
from pathlib import Path
from typing import Any

from utils.config import get_settings
from utils.logger import LoggerMixin
from watcher.debouncer import Debouncer
from watcher.directory_watcher import DirectoryWatcher
from watcher.exceptions import ListingError, RebuildError, WatchStartError

WatcherFactory = Callable[..., DirectoryWatcher]


class WatcherTreeManager(LoggerMixin):
    """
    Two-level watcher tree over a devices root directory.

    The root watcher reacts to structural change: it requests a reload
    with the long delay and immediately reconciles the child watchers.
    Child watchers only request a reload with the short delay. The
    reload itself stops the root watcher, runs the rebuild callback and
    then restarts watching.

    All methods must be called on the manager's event loop. Directory
    watchers deliver their callbacks there, so reconciliation and
    rebuilds never interleave.
    """

    def __init__(
        self,
        root_path: Path,
        rebuild: Callable[[], Any],
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        root_delay: float | None = None,
        device_delay: float | None = None,
        watcher_factory: WatcherFactory = DirectoryWatcher,
        on_rebuild_error: Callable[[RebuildError], Any] | None = None,
        on_degraded: Callable[[], Any] | None = None,
    ) -> None:
        """
        Initialize the manager.

        Args:
            root_path: Devices root directory, fixed for the manager's lifetime
            rebuild: Sync or async callable that recomputes the view
            loop: Event loop all callbacks run on (defaults to the running loop)
            root_delay: Quiet period after a root change, in seconds
            device_delay: Quiet period after a device change, in seconds
            watcher_factory: Creates directory watchers (path, callback, loop)
            on_rebuild_error: Receives failures of the rebuild callback
            on_degraded: Called when the root directory cannot be watched
        """
        settings = get_settings()

        self._root_path = Path(root_path)
        self._rebuild = rebuild
        self._loop = loop
        self._root_delay = (
            root_delay if root_delay is not None else settings.watcher.root_reload_delay
        )
        self._device_delay = (
            device_delay if device_delay is not None else settings.watcher.device_reload_delay
        )
        self._watcher_factory = watcher_factory
        self._on_rebuild_error = on_rebuild_error
        self._on_degraded = on_degraded

        self._debouncer = Debouncer(loop=loop, default_delay=self._device_delay)
        self._root_watcher: DirectoryWatcher | None = None
        self._children: dict[Path, DirectoryWatcher] = {}
        self._rebuild_lock: asyncio.Lock | None = None
        self._started = False
        # True while a rebuild has the root watcher deliberately stopped
        self._rebuilding = False

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
            self._debouncer.set_event_loop(self._loop)
        return self._loop

    def start(self) -> None:
        """
        Start watching the devices root and every device directory.

        Failure to watch the root is logged and leaves the manager
        degraded; it never raises.
        """
        loop = self._get_loop()
        self._started = True

        if self._root_watcher is None:
            self._root_watcher = self._watcher_factory(
                self._root_path, self._on_root_changed, loop
            )

        if self._start_root(self._root_watcher):
            self.reconcile()

        self.log.info(
            "watcher_tree_started",
            root=self._root_path,
            watching=self.is_watching,
            devices=len(self._children),
        )

    def stop(self) -> None:
        """Stop every watcher and drop any pending reload."""
        self._started = False
        self._debouncer.cancel()
        if self._root_watcher is not None:
            self._root_watcher.stop()
        self._stop_children()
        self.log.info("watcher_tree_stopped", root=self._root_path)

    def _start_root(self, root_watcher: DirectoryWatcher) -> bool:
        try:
            root_watcher.start()
        except WatchStartError as e:
            self.log.warning("root_watch_failed", root=self._root_path, reason=e.reason)
            if self._on_degraded is not None:
                self._on_degraded()
            return False
        return True

    def _stop_children(self, join: bool = True) -> None:
        for child in self._children.values():
            child.stop(join=join)
        self._children = {}

    def _list_device_directories(self) -> list[Path]:
        """
        List immediate subdirectories of the root.

        Raises:
            ListingError: If the root cannot be enumerated
        """
        try:
            entries = sorted(self._root_path.iterdir())
        except OSError as e:
            raise ListingError(self._root_path, e.strerror or str(e)) from e

        directories = []
        for entry in entries:
            try:
                if entry.is_dir() and not entry.is_symlink():
                    directories.append(entry)
            except OSError:
                # Vanished or unreadable between listing and stat.
                continue
        return directories

    def reconcile(self) -> frozenset[Path]:
        """
        Replace the child watchers with one per current device directory.

        All existing children are stopped before any new one starts, so
        no path is ever watched twice. Listing failures yield an empty
        child set; the next root event retries.

        Returns:
            Paths of the child watchers now active
        """
        loop = self._get_loop()
        # Handles are released synchronously; don't block the loop on threads.
        self._stop_children(join=False)

        try:
            directories = self._list_device_directories()
        except ListingError as e:
            self.log.warning("device_listing_failed", root=e.path, reason=e.reason)
            return frozenset()

        children: dict[Path, DirectoryWatcher] = {}
        for directory in directories:
            child = self._watcher_factory(directory, self._on_device_changed, loop)
            try:
                child.start()
            except WatchStartError as e:
                self.log.debug("device_watch_skipped", path=directory, reason=e.reason)
                continue
            children[directory] = child

        self._children = children
        self.log.debug("watchers_reconciled", devices=len(children))
        return frozenset(children)

    def request_reload(self, delay: float | None = None) -> None:
        """
        Schedule a rebuild after ``delay`` seconds of quiet.

        Args:
            delay: Quiet period; defaults to the device delay
        """
        self._get_loop()
        self._debouncer.schedule_after(delay, self._reload)

    def cancel_reload(self) -> None:
        """Drop the pending rebuild, if any."""
        self._debouncer.cancel()

    def _on_root_changed(self) -> None:
        self.request_reload(self._root_delay)
        self.reconcile()

    def _on_device_changed(self) -> None:
        self.request_reload(self._device_delay)

    def _get_rebuild_lock(self) -> asyncio.Lock:
        if self._rebuild_lock is None:
            self._rebuild_lock = asyncio.Lock()
        return self._rebuild_lock

    async def _reload(self) -> None:
        async with self._get_rebuild_lock():
            root_watcher = self._root_watcher
            if root_watcher is not None:
                root_watcher.stop(join=False)

            self._rebuilding = True
            try:
                await self._run_rebuild()
            finally:
                self._rebuilding = False

            if not self._started or root_watcher is None:
                return
            if self._start_root(root_watcher):
                self.reconcile()
            else:
                # Nothing to snapshot while the root is gone.
                self._stop_children(join=False)
                self.log.warning("watching_suspended", root=self._root_path)

    async def rebuild_now(self) -> bool:
        """
        Run the rebuild callback once, without touching the watchers.

        Waits for any rebuild already in progress, so the callback
        never runs twice at the same time.

        Returns:
            True if the rebuild succeeded
        """
        async with self._get_rebuild_lock():
            return await self._run_rebuild()

    async def _run_rebuild(self) -> bool:
        self.log.debug("rebuild_started", root=self._root_path)
        try:
            result = self._rebuild()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            error = RebuildError(e)
            self.log.error("rebuild_failed", error=str(e))
            if self._on_rebuild_error is not None:
                self._on_rebuild_error(error)
            return False

        self.log.info("rebuild_finished", root=self._root_path)
        return True

    async def wait_idle(self) -> None:
        """Wait until rebuilds that already fired have completed."""
        await self._debouncer.drain()

    @property
    def root_path(self) -> Path:
        """Devices root directory."""
        return self._root_path

    @property
    def root_delay(self) -> float:
        """Quiet period applied after a root change."""
        return self._root_delay

    @property
    def device_delay(self) -> float:
        """Quiet period applied after a device change."""
        return self._device_delay

    @property
    def child_paths(self) -> frozenset[Path]:
        """Paths currently covered by a child watcher."""
        return frozenset(self._children)

    @property
    def reload_pending(self) -> bool:
        """Whether a debounced rebuild is waiting to fire."""
        return self._debouncer.pending

    @property
    def is_watching(self) -> bool:
        """Check if the root directory is being watched."""
        return self._root_watcher is not None and self._root_watcher.is_active

    @property
    def is_degraded(self) -> bool:
        """Started, but the root directory is not being watched."""
        return self._started and not self._rebuilding and not self.is_watching
