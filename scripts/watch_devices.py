#!/usr/bin/env python3
"""
SimWatch Device Watcher Script.

Watches the simulator devices directory and prints the menu every time
the device set settles.
Requires Python 3.11+.

Usage:
    python scripts/watch_devices.py [--root ~/Library/Developer/CoreSimulator/Devices]
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from menu.console import ConsoleConsumer
from menu.controller import MenuController
from menu.simulators import SimulatorDeviceProvider
from utils.config import get_settings
from utils.logger import configure_logging, get_logger


logger = get_logger("watch_devices")


async def watch_devices(
    root: Path,
    root_delay: float | None = None,
    device_delay: float | None = None,
    once: bool = False,
) -> int:
    """
    Run the menu controller until cancelled.

    Args:
        root: CoreSimulator devices directory
        root_delay: Quiet period after a device is added or removed
        device_delay: Quiet period after a change inside a device
        once: Print the menu once and exit instead of watching

    Returns:
        Number of menus published
    """
    consumer = ConsoleConsumer()
    stopped = asyncio.Event()

    controller = MenuController(
        SimulatorDeviceProvider(root),
        consumer,
        devices_root=root,
        root_delay=root_delay,
        device_delay=device_delay,
        on_quit=stopped.set,
    )

    if once:
        await controller.rebuild()
        return consumer.presented

    await controller.start()
    logger.info(
        "watching_devices",
        root=root,
        devices=len(controller.manager.child_paths),
        degraded=controller.manager.is_degraded,
    )

    try:
        await stopped.wait()
    finally:
        controller.stop()

    return consumer.presented


def main() -> None:
    """Main entry point."""
    settings = get_settings()

    parser = argparse.ArgumentParser(
        description="Watch simulator devices and print the status menu on change"
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=settings.watcher.devices_root,
        help="Devices directory to watch (default: %(default)s)",
    )
    parser.add_argument(
        "--root-delay",
        type=float,
        default=None,
        help="Seconds of quiet after a device is added or removed",
    )
    parser.add_argument(
        "--device-delay",
        type=float,
        default=None,
        help="Seconds of quiet after a change inside a device",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Print the menu once and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL",
    )

    args = parser.parse_args()
    configure_logging(level=args.log_level)

    root = args.root.expanduser()
    if not root.is_dir():
        # Not fatal: the controller keeps running degraded until restarted.
        logger.warning("devices_root_missing", root=root)

    try:
        asyncio.run(watch_devices(
            root,
            root_delay=args.root_delay,
            device_delay=args.device_delay,
            once=args.once,
        ))
    except KeyboardInterrupt:
        print("\nStopped by user", file=sys.stderr)


if __name__ == "__main__":
    main()
