"""
SimWatch Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import asyncio
import plistlib
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from menu.models import Application, Device, DeviceState, MenuItem, Runtime
from watcher.exceptions import WatchStartError


class FakeWatcher:
    """In-memory stand-in for DirectoryWatcher; fired by hand."""

    def __init__(
        self,
        registry: "WatcherRegistry",
        path: Path,
        callback: Callable[[], Any] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._registry = registry
        self.path = Path(path)
        self.callback = callback
        self.loop = loop
        self.is_active = False
        self.start_count = 0
        self.stop_count = 0
        self.stop_joins: list[bool] = []

    def start(self) -> None:
        if self.is_active:
            return
        if self.path in self._registry.fail_paths:
            raise WatchStartError(self.path, "registration refused")
        if not self.path.is_dir():
            raise WatchStartError(self.path, "path does not exist")
        if self._registry.active_for(self.path):
            self._registry.duplicates.append(self.path)
        self.is_active = True
        self.start_count += 1

    def stop(self, join: bool = True) -> None:
        if self.is_active:
            self.stop_count += 1
            self.stop_joins.append(join)
        self.is_active = False

    def fire(self) -> None:
        """Simulate a filesystem notification."""
        if self.is_active and self.callback is not None:
            self.callback()


class WatcherRegistry:
    """Factory for FakeWatcher that remembers every watcher it made."""

    def __init__(self) -> None:
        self.created: list[FakeWatcher] = []
        self.fail_paths: set[Path] = set()
        self.duplicates: list[Path] = []

    def create(
        self,
        path: Path,
        callback: Callable[[], Any] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> FakeWatcher:
        watcher = FakeWatcher(self, path, callback, loop)
        self.created.append(watcher)
        return watcher

    def active_for(self, path: Path) -> list[FakeWatcher]:
        return [w for w in self.created if w.is_active and w.path == Path(path)]

    @property
    def root(self) -> FakeWatcher:
        return self.created[0]

    @property
    def active_children(self) -> list[FakeWatcher]:
        return [w for w in self.created[1:] if w.is_active]

    def child(self, path: Path) -> FakeWatcher:
        (watcher,) = [w for w in self.active_children if w.path == Path(path)]
        return watcher


class RecordingConsumer:
    """View consumer that keeps every presented menu."""

    def __init__(self) -> None:
        self.menus: list[list[MenuItem]] = []

    def present(self, items: list[MenuItem]) -> None:
        self.menus.append(items)


class StaticProvider:
    """Device state provider returning a fixed, replaceable list."""

    def __init__(self, runtimes: list[Runtime]) -> None:
        self.runtimes = runtimes
        self.calls = 0
        self.error: Exception | None = None

    def reload(self) -> list[Runtime]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.runtimes


@pytest.fixture
def registry() -> WatcherRegistry:
    """Fake watcher factory."""
    return WatcherRegistry()


@pytest.fixture
def devices_root(tmp_path: Path) -> Path:
    """Devices root holding deviceA, deviceB and a stray file."""
    root = tmp_path / "Devices"
    root.mkdir()
    (root / "deviceA").mkdir()
    (root / "deviceB").mkdir()
    (root / "device_set.plist").write_text("not a device")
    return root


@pytest.fixture
def sample_runtimes() -> list[Runtime]:
    """Two runtimes; only iOS has devices with applications."""
    iphone = Device(
        udid="A1",
        name="iPhone 15",
        state=DeviceState.BOOTED,
        applications=[
            Application(bundle_id="com.example.zeta", bundle_display_name="zeta"),
            Application(bundle_id="com.example.alpha", bundle_display_name="Alpha"),
        ],
    )
    ipad = Device(udid="B2", name="iPad Air", state=DeviceState.SHUTDOWN)
    watch = Device(udid="C3", name="Apple Watch", state=DeviceState.SHUTDOWN)
    return [
        Runtime(identifier="ios-17-2", name="iOS 17.2", devices=[iphone, ipad]),
        Runtime(identifier="watchos-10-2", name="watchOS 10.2", devices=[watch]),
    ]


def write_device(
    root: Path,
    udid: str,
    name: str,
    runtime: str = "com.apple.CoreSimulator.SimRuntime.iOS-17-2",
    state: int = 1,
    apps: dict[str, str] | None = None,
) -> Path:
    """Create a CoreSimulator-style device directory."""
    device_dir = root / udid
    device_dir.mkdir(parents=True, exist_ok=True)
    with (device_dir / "device.plist").open("wb") as fp:
        plistlib.dump({"UDID": udid, "name": name, "runtime": runtime, "state": state}, fp)

    for index, (bundle_id, display_name) in enumerate((apps or {}).items()):
        app_dir = (
            device_dir
            / "data/Containers/Bundle/Application"
            / f"UUID-{index}"
            / f"{display_name}.app"
        )
        app_dir.mkdir(parents=True)
        with (app_dir / "Info.plist").open("wb") as fp:
            plistlib.dump(
                {"CFBundleIdentifier": bundle_id, "CFBundleDisplayName": display_name},
                fp,
            )
    return device_dir


@pytest.fixture
def make_device() -> Callable[..., Path]:
    """Factory writing CoreSimulator-style device directories."""
    return write_device


@pytest.fixture
def consumer() -> RecordingConsumer:
    """View consumer recording presented menus."""
    return RecordingConsumer()


@pytest.fixture
def provider(sample_runtimes: list[Runtime]) -> StaticProvider:
    """Device state provider over ``sample_runtimes``."""
    return StaticProvider(sample_runtimes)
