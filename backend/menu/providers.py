"""
SimWatch Menu Collaborator Interfaces.

Protocols for the pieces the menu controller consumes but does not own.
Requires Python 3.11+.
"""

from collections.abc import Awaitable
from typing import Protocol, runtime_checkable

from menu.models import MenuItem, Runtime


@runtime_checkable
class DeviceStateProvider(Protocol):
    """Enumerates runtimes, their devices, and installed applications."""

    def reload(self) -> list[Runtime] | Awaitable[list[Runtime]]:
        """Return the current device state (may be a coroutine)."""
        ...


@runtime_checkable
class LoginItemStore(Protocol):
    """Reads and writes the persisted "launch at login" flag."""

    def is_enabled(self) -> bool: ...

    def set_enabled(self, enabled: bool) -> None: ...


@runtime_checkable
class ViewConsumer(Protocol):
    """Presents the menu tree (status bar menu, console, dashboard...)."""

    def present(self, items: list[MenuItem]) -> None: ...


class MemoryLoginItemStore:
    """Login item flag kept in memory; for platforms without login items."""

    def __init__(self, enabled: bool = False) -> None:
        self._enabled = enabled

    def is_enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
