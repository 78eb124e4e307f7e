"""
SimWatch CoreSimulator Reader.

Reads simulator devices and installed applications straight from the
CoreSimulator devices directory.
Requires Python 3.11+.
"""

import plistlib
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from xml.parsers.expat import ExpatError

from menu.models import Application, Device, DeviceState, Runtime
from utils.config import get_settings
from utils.logger import LoggerMixin

RUNTIME_PREFIX = "com.apple.CoreSimulator.SimRuntime."
APPLICATIONS_SUBPATH = Path("data/Containers/Bundle/Application")

# CoreSimulator's numeric device states
_STATE_MAP = {
    1: DeviceState.SHUTDOWN,
    3: DeviceState.BOOTED,
}


def runtime_display_name(identifier: str) -> str:
    """
    Turn a runtime identifier into a display name.

    ``com.apple.CoreSimulator.SimRuntime.iOS-17-2`` becomes ``iOS 17.2``.
    Identifiers without the CoreSimulator prefix are returned unchanged.
    """
    if not identifier.startswith(RUNTIME_PREFIX):
        return identifier
    platform, _, version = identifier[len(RUNTIME_PREFIX):].partition("-")
    if not version:
        return platform
    return f"{platform} {version.replace('-', '.')}"


def _load_plist(path: Path) -> dict[str, Any] | None:
    try:
        with path.open("rb") as fp:
            data = plistlib.load(fp)
    except (OSError, plistlib.InvalidFileException, ValueError, ExpatError):
        return None
    return data if isinstance(data, dict) else None


class SimulatorDeviceProvider(LoggerMixin):
    """
    Device state provider backed by ``device.plist`` files.

    Each immediate subdirectory of the devices root is one device;
    devices whose plist is missing or unreadable are skipped.
    """

    def __init__(self, devices_root: Path | None = None) -> None:
        """
        Initialize the provider.

        Args:
            devices_root: CoreSimulator devices directory (defaults to settings)
        """
        self._devices_root = devices_root or get_settings().watcher.devices_root

    def reload(self) -> list[Runtime]:
        """Read all devices, grouped by runtime and sorted by name."""
        runtimes: dict[str, Runtime] = {}

        for runtime_id, device in self._iter_devices():
            runtime = runtimes.get(runtime_id)
            if runtime is None:
                runtime = Runtime(
                    identifier=runtime_id, name=runtime_display_name(runtime_id)
                )
                runtimes[runtime_id] = runtime
            runtime.devices.append(device)

        result = sorted(runtimes.values(), key=lambda r: r.name)
        for runtime in result:
            runtime.devices.sort(key=lambda d: d.name.lower())

        self.log.debug(
            "devices_loaded",
            runtimes=len(result),
            devices=sum(len(r.devices) for r in result),
        )
        return result

    def _iter_devices(self) -> Iterator[tuple[str, Device]]:
        try:
            entries = sorted(self._devices_root.iterdir())
        except OSError as e:
            self.log.warning("devices_root_unreadable", path=self._devices_root, error=str(e))
            return

        for entry in entries:
            info = _load_plist(entry / "device.plist")
            if info is None:
                self.log.debug("device_skipped", path=entry)
                continue

            device = Device(
                udid=str(info.get("UDID", entry.name)),
                name=str(info.get("name", entry.name)),
                state=_STATE_MAP.get(info.get("state"), DeviceState.UNKNOWN),
                applications=self._read_applications(entry),
            )
            yield str(info.get("runtime", "")), device

    def _read_applications(self, device_dir: Path) -> list[Application]:
        applications: list[Application] = []
        for info_path in sorted(device_dir.glob(f"{APPLICATIONS_SUBPATH}/*/*.app/Info.plist")):
            info = _load_plist(info_path)
            if info is None or "CFBundleIdentifier" not in info:
                continue
            bundle_path = info_path.parent
            display_name = (
                info.get("CFBundleDisplayName")
                or info.get("CFBundleName")
                or bundle_path.stem
            )
            applications.append(
                Application(
                    bundle_id=str(info["CFBundleIdentifier"]),
                    bundle_display_name=str(display_name),
                    bundle_path=bundle_path,
                )
            )
        return applications
