"""
SimWatch Watcher Package.

Directory watchers, debouncing, and the device watcher tree.
Requires Python 3.11+.
"""

from watcher.debouncer import Debouncer
from watcher.directory_watcher import DirectoryWatcher
from watcher.exceptions import ListingError, RebuildError, WatcherError, WatchStartError
from watcher.tree_manager import WatcherTreeManager

__all__ = [
    "Debouncer",
    "DirectoryWatcher",
    "WatcherTreeManager",
    "WatcherError",
    "WatchStartError",
    "ListingError",
    "RebuildError",
]
