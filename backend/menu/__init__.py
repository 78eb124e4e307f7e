"""
SimWatch Menu Package.

Menu composition from simulator device state.
Requires Python 3.11+.
"""

from menu.builder import MenuBuilder
from menu.console import ConsoleConsumer, render_menu
from menu.controller import MenuController
from menu.models import (
    Application,
    Device,
    DeviceState,
    ItemAction,
    ItemState,
    MenuItem,
    Runtime,
)
from menu.providers import (
    DeviceStateProvider,
    LoginItemStore,
    MemoryLoginItemStore,
    ViewConsumer,
)
from menu.simulators import SimulatorDeviceProvider

__all__ = [
    "Application",
    "ConsoleConsumer",
    "Device",
    "DeviceState",
    "DeviceStateProvider",
    "ItemAction",
    "ItemState",
    "LoginItemStore",
    "MemoryLoginItemStore",
    "MenuBuilder",
    "MenuController",
    "MenuItem",
    "Runtime",
    "SimulatorDeviceProvider",
    "ViewConsumer",
    "render_menu",
]
