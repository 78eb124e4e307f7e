"""
SimWatch Menu Builder.

Composes the menu tree from device state.
Requires Python 3.11+.
"""

from menu.models import (
    Device,
    ItemAction,
    ItemState,
    MenuItem,
    Runtime,
)
from utils.logger import LoggerMixin

REFRESH_TITLE = "Refresh"
LAUNCH_AT_LOGIN_TITLE = "Launch at Login"
QUIT_TITLE = "Quit"
VERSION_LABEL = "Version"
LAUNCH_SIMULATOR_TITLE = "Launch Simulator"
NOT_WATCHING_TITLE = "Not watching for changes"


class MenuBuilder(LoggerMixin):
    """
    Builds the status menu.

    Layout, top to bottom: one section per runtime that has at least
    one device with installed applications, then the Refresh,
    Launch at Login and Quit items, then the version label.
    """

    def __init__(self, version: str | None = None) -> None:
        """
        Initialize the builder.

        Args:
            version: Version string shown at the bottom, or None to omit it
        """
        self._version = version

    def build(
        self,
        runtimes: list[Runtime],
        *,
        launch_at_login: bool = False,
        watching: bool = True,
    ) -> list[MenuItem]:
        """
        Build the full menu.

        Args:
            runtimes: Current device state
            launch_at_login: Whether the login item is enabled
            watching: False adds a disabled degraded-state notice

        Returns:
            Top-level menu items
        """
        items: list[MenuItem] = []
        device_count = 0

        for runtime in runtimes:
            devices = [d for d in runtime.devices if d.applications]
            if not devices:
                continue

            items.append(MenuItem.make_separator())
            items.append(MenuItem(title=str(runtime), enabled=False))
            for device in devices:
                items.append(self._device_item(runtime, device))
            device_count += len(devices)

        items.append(MenuItem.make_separator())
        if not watching:
            items.append(MenuItem(title=NOT_WATCHING_TITLE, enabled=False))
        items.append(
            MenuItem(title=REFRESH_TITLE, action=ItemAction.REFRESH, key_equivalent="r")
        )
        items.append(
            MenuItem(
                title=LAUNCH_AT_LOGIN_TITLE,
                action=ItemAction.TOGGLE_LAUNCH_AT_LOGIN,
                state=ItemState.ON if launch_at_login else ItemState.OFF,
            )
        )
        items.append(MenuItem(title=QUIT_TITLE, action=ItemAction.QUIT, key_equivalent="q"))

        if self._version:
            items.append(MenuItem.make_separator())
            items.append(MenuItem(title=f"{VERSION_LABEL} {self._version}"))

        self.log.debug("menu_built", devices=device_count, items=len(items))
        return items

    def _device_item(self, runtime: Runtime, device: Device) -> MenuItem:
        submenu = [
            MenuItem(
                title=f"{LAUNCH_SIMULATOR_TITLE} ({runtime})",
                action=ItemAction.LAUNCH_SIMULATOR,
                device=device,
            ),
            MenuItem.make_separator(),
        ]

        applications = sorted(
            device.applications, key=lambda app: app.bundle_display_name.lower()
        )
        for app in applications:
            submenu.append(
                MenuItem(
                    title=app.bundle_display_name,
                    action=ItemAction.OPEN_APPLICATION,
                    device=device,
                    application=app,
                )
            )

        return MenuItem(
            title=device.name,
            state=ItemState.ON if device.is_booted else ItemState.OFF,
            device=device,
            submenu=submenu,
        )
