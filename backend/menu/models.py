"""
SimWatch Menu Data Models.

Device state as reported by the state provider, and the menu tree
composed from it.
Requires Python 3.11+.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class DeviceState(str, Enum):
    """Simulator device power state."""

    SHUTDOWN = "shutdown"
    BOOTED = "booted"
    UNKNOWN = "unknown"


class ItemState(str, Enum):
    """Check mark state of a menu item."""

    OFF = "off"
    ON = "on"


class ItemAction(str, Enum):
    """What selecting a menu item does."""

    NONE = "none"
    LAUNCH_SIMULATOR = "launch_simulator"
    OPEN_APPLICATION = "open_application"
    REFRESH = "refresh"
    TOGGLE_LAUNCH_AT_LOGIN = "toggle_launch_at_login"
    QUIT = "quit"


@dataclass(slots=True)
class Application:
    """An application installed on a device."""

    bundle_id: str
    bundle_display_name: str
    bundle_path: Path | None = None

    @property
    def as_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "bundle_id": self.bundle_id,
            "bundle_display_name": self.bundle_display_name,
            "bundle_path": str(self.bundle_path) if self.bundle_path else None,
        }


@dataclass(slots=True)
class Device:
    """A simulator device and the applications installed on it."""

    udid: str
    name: str
    state: DeviceState = DeviceState.SHUTDOWN
    applications: list[Application] = field(default_factory=list)

    @property
    def is_booted(self) -> bool:
        """Check if the device is running."""
        return self.state == DeviceState.BOOTED


@dataclass(slots=True)
class Runtime:
    """An OS runtime (e.g. "iOS 17.2") and its devices."""

    identifier: str
    name: str
    devices: list[Device] = field(default_factory=list)

    def __str__(self) -> str:
        return self.name


@dataclass(slots=True)
class MenuItem:
    """
    One entry of the menu tree.

    Separators are items with ``separator=True`` and no title. The
    ``device`` and ``application`` fields carry what an action applies to.
    """

    title: str = ""
    enabled: bool = True
    state: ItemState = ItemState.OFF
    action: ItemAction = ItemAction.NONE
    key_equivalent: str = ""
    separator: bool = False
    device: Device | None = None
    application: Application | None = None
    submenu: list["MenuItem"] = field(default_factory=list)

    @classmethod
    def make_separator(cls) -> "MenuItem":
        """Create a separator item."""
        return cls(enabled=False, separator=True)

    @property
    def as_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        if self.separator:
            return {"separator": True}
        data: dict[str, Any] = {
            "title": self.title,
            "enabled": self.enabled,
            "state": self.state.value,
            "action": self.action.value,
        }
        if self.key_equivalent:
            data["key_equivalent"] = self.key_equivalent
        if self.submenu:
            data["submenu"] = [item.as_dict for item in self.submenu]
        return data
