"""
SimWatch Menu Controller.

Keeps the published menu in sync with the simulator devices directory.
Requires Python 3.11+.
"""

import asyncio
import inspect
from collections.abc import Callable
from pathlib import Path
from typing import Any

from menu.builder import MenuBuilder
from menu.models import ItemAction, MenuItem, Runtime
from menu.providers import (
    DeviceStateProvider,
    LoginItemStore,
    MemoryLoginItemStore,
    ViewConsumer,
)
from utils.config import get_settings
from utils.logger import LoggerMixin
from watcher.directory_watcher import DirectoryWatcher
from watcher.exceptions import RebuildError
from watcher.tree_manager import WatcherFactory, WatcherTreeManager


class MenuController(LoggerMixin):
    """
    Owns the watcher tree and republishes the menu after every settled change.

    Each rebuild reloads device state from the provider, composes the
    menu and hands it to the view consumer. Actions that apply to a
    device or application are forwarded to ``on_action``.
    """

    def __init__(
        self,
        provider: DeviceStateProvider,
        consumer: ViewConsumer,
        *,
        devices_root: Path | None = None,
        login_items: LoginItemStore | None = None,
        builder: MenuBuilder | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        root_delay: float | None = None,
        device_delay: float | None = None,
        watcher_factory: WatcherFactory = DirectoryWatcher,
        on_quit: Callable[[], Any] | None = None,
        on_action: Callable[[MenuItem], Any] | None = None,
    ) -> None:
        settings = get_settings()

        self._provider = provider
        self._consumer = consumer
        self._login_items = login_items or MemoryLoginItemStore()
        self._builder = builder or MenuBuilder(version=settings.app_version)
        self._on_quit = on_quit
        self._on_action = on_action

        self._runtimes: list[Runtime] = []
        self._menu: list[MenuItem] = []
        self._last_error: RebuildError | None = None

        self._manager = WatcherTreeManager(
            devices_root or settings.watcher.devices_root,
            self.rebuild,
            loop=loop,
            root_delay=root_delay,
            device_delay=device_delay,
            watcher_factory=watcher_factory,
            on_rebuild_error=self._on_rebuild_error,
            on_degraded=self._present,
        )

    async def start(self) -> None:
        """Publish the initial menu, then start watching."""
        await self._manager.rebuild_now()
        self._manager.start()

    def stop(self) -> None:
        """Stop watching; the last published menu stays as it is."""
        self._manager.stop()

    async def rebuild(self) -> None:
        """Reload device state and publish a fresh menu."""
        runtimes = self._provider.reload()
        if inspect.isawaitable(runtimes):
            runtimes = await runtimes
        self._runtimes = list(runtimes)
        self._last_error = None
        self._present()

    def _present(self) -> None:
        self._menu = self._builder.build(
            self._runtimes,
            launch_at_login=self._login_items.is_enabled(),
            watching=not self._manager.is_degraded,
        )
        self._consumer.present(self._menu)

    def _on_rebuild_error(self, error: RebuildError) -> None:
        self._last_error = error
        self.log.warning("menu_not_refreshed", error=str(error.cause))

    def handle(self, item: MenuItem) -> None:
        """
        Perform the action of a selected menu item.

        Args:
            item: Item the user selected
        """
        if item.action == ItemAction.REFRESH:
            self.refresh()
        elif item.action == ItemAction.TOGGLE_LAUNCH_AT_LOGIN:
            self.toggle_launch_at_login()
        elif item.action == ItemAction.QUIT:
            self.quit()
        elif item.action != ItemAction.NONE and self._on_action is not None:
            self._on_action(item)

    def refresh(self) -> None:
        """Request a rebuild after the short quiet period."""
        self._manager.request_reload(self._manager.device_delay)

    def toggle_launch_at_login(self) -> bool:
        """
        Flip the launch-at-login flag and republish the menu.

        Returns:
            The new flag value
        """
        enabled = not self._login_items.is_enabled()
        self._login_items.set_enabled(enabled)
        self.log.info("launch_at_login_changed", enabled=enabled)
        self._present()
        return enabled

    def quit(self) -> None:
        """Ask the owner of the controller to quit."""
        if self._on_quit is not None:
            self._on_quit()

    @property
    def manager(self) -> WatcherTreeManager:
        """Underlying watcher tree."""
        return self._manager

    @property
    def menu(self) -> list[MenuItem]:
        """Most recently published menu."""
        return self._menu

    @property
    def last_error(self) -> RebuildError | None:
        """Failure of the latest rebuild, cleared by the next success."""
        return self._last_error
