"""Command line entry point for adb-logger."""

from __future__ import annotations

import asyncio
import logging
import sys

import click
from rich.console import Console

from . import __version__, prompts
from .exceptions import (
    AdbLoggerError,
    DeviceQueryError,
    LaunchError,
    StreamError,
    ValidationError,
)
from .models import AppRecord, DeviceStatus, Severity
from .preferences import PreferencesStore
from .scanner import ProjectScanner
from .streams import LogPipeline
from .utils import (
    check_devices,
    enable_debug,
    get_device_name,
    is_package_installed,
    validate_package_name,
    wait_for_device,
)

logger = logging.getLogger(__name__)

console = Console(highlight=False)

DEVICE_HINTS: dict[str, tuple[str, ...]] = {
    "not_found": (
        "💡 To fix this:",
        "  1. Install Android SDK",
        "  2. Add ADB to your PATH environment variable",
        "  3. Restart your terminal",
    ),
    "timeout": (
        "💡 Try:",
        "  1. Restart ADB server: adb kill-server && adb start-server",
        "  2. Check USB connection",
        "  3. Enable USB debugging on your device",
    ),
    "killed": (
        "💡 Try running the command again.",
    ),
}


def show_device_error(error: DeviceQueryError) -> None:
    console.print("❌ No Android devices or emulators connected", style="red")
    console.print(f"Error: {error}", style="red")
    hints = DEVICE_HINTS.get(error.reason, ())
    for index, hint in enumerate(hints):
        console.print(hint, style="yellow" if index == 0 else "dim")


def show_device_status(status: DeviceStatus) -> bool:
    """Print the device status.

    Returns:
        True if monitoring can go ahead.
    """
    if not status.connected:
        console.print("❌ No Android devices or emulators connected", style="red")
        console.print(
            "Please connect a device or start an emulator and try again.",
            style="yellow",
        )
        return False

    if status.count == 1:
        console.print(
            f"✅ Connected to Android device: {status.devices[0].id}", style="green"
        )
    else:
        console.print(f"✅ Connected to {status.count} Android devices:", style="green")
        for device in status.devices:
            console.print(f"  - {device.id}", style="cyan")
    return True


async def find_device(
    adb_path: str | None, wait_seconds: float | None
) -> DeviceStatus | None:
    """Query the connected devices, waiting for one if asked to.

    Raises:
        DeviceQueryError: If the device list cannot be read.
    """
    if wait_seconds:
        console.print(f"Waiting up to {wait_seconds:g}s for a device...", style="dim")
        return await wait_for_device(wait_seconds, adb_path=adb_path)
    return await check_devices(adb_path)


def choose_app(
    preferences: PreferencesStore, extra_scan_paths: tuple[str, ...]
) -> AppRecord:
    scanner = ProjectScanner()
    projects = scanner.scan_projects(
        [*preferences.get_custom_scan_paths(), *extra_scan_paths]
    )
    if not projects:
        console.print(
            "No React Native projects found in default directories.", style="yellow"
        )
        console.print("You can add custom scan paths in the settings.\n", style="dim")
    return prompts.select_app(projects, preferences, console)


def app_for_package(package_name: str, preferences: PreferencesStore) -> AppRecord:
    for app in preferences.get_recent_apps():
        if app.package_name == package_name:
            return app
    return AppRecord(name="Custom App", package_name=package_name, path=None)


async def stream_logs(
    package_name: str,
    level: Severity,
    adb_path: str | None,
    device_id: str | None,
) -> int:
    console.print(f"\n🚀 Starting log monitoring for {package_name}", style="blue")
    console.print(f"Log level: {level.value}", style="dim")
    console.print("Press Ctrl+C to stop\n", style="dim")

    pipeline = LogPipeline(adb_path=adb_path, device_id=device_id, console=console)
    try:
        session = await pipeline.start(package_name, level)
    except LaunchError as e:
        console.print(f"Failed to start ADB logcat: {e}", style="red")
        return 1

    if session.scoped:
        console.print(f"✅ Found running process (PID: {session.pid})", style="green")
    else:
        console.print(
            f"⚠️  App not running, monitoring all logs for package: {package_name}",
            style="yellow",
        )
        if not await is_package_installed(package_name, adb_path, device_id):
            console.print(
                f"⚠️  {package_name} does not appear to be installed on the device",
                style="yellow",
            )

    try:
        await pipeline.wait(session)
    except StreamError as e:
        console.print(f"ADB process error: {e}", style="red")
        return 1
    return 0


def run(
    package_name: str | None,
    level_name: str | None,
    serial: str | None,
    adb_path: str | None,
    wait_seconds: float | None,
    scan_paths: tuple[str, ...],
) -> int:
    """Run the interactive flow and stream logs.

    Returns:
        The process exit code.
    """
    console.print("🔍 ADB Logger CLI", style="bold blue")
    console.print(
        "Scanning for React Native projects and checking device connection...\n",
        style="dim",
    )

    try:
        if package_name is not None:
            package_name = validate_package_name(package_name)
        level = Severity.parse(level_name) if level_name else None
    except (ValidationError, ValueError) as e:
        console.print(f"Error: {e}", style="red")
        return 1

    try:
        status = asyncio.run(find_device(adb_path, wait_seconds))
    except DeviceQueryError as e:
        show_device_error(e)
        return 1
    if status is None or not show_device_status(status):
        if status is None:
            console.print("❌ No device became ready in time", style="red")
        return 1

    device_id = serial
    if device_id is None and status.count > 1:
        device_id = prompts.select_device(status.devices, console).id
    if device_id:
        name = asyncio.run(get_device_name(device_id, adb_path))
        console.print(f"Streaming from {name} ({device_id})", style="dim")

    preferences = PreferencesStore()
    preferences.initialize()

    if package_name is None:
        app = choose_app(preferences, scan_paths)
    else:
        app = app_for_package(package_name, preferences)
    if level is None:
        level = prompts.select_log_level(preferences.get_preferred_log_level(), console)

    preferences.add_recent_app(app)
    preferences.set_preferred_log_level(level)
    preferences.set_last_used_package(app.package_name)

    return asyncio.run(stream_logs(app.package_name, level, adb_path, device_id))


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--package", "-p", "package_name", help="Package to monitor (skips the app menu)."
)
@click.option(
    "--level",
    "-l",
    "level_name",
    help="Minimum log level: V, D, I, W, E or F (skips the level menu).",
)
@click.option("--serial", "-s", help="Serial of the device to stream from.")
@click.option(
    "--adb-path",
    type=click.Path(dir_okay=False),
    help="Path to the adb executable. Found automatically by default.",
)
@click.option(
    "--wait",
    "wait_seconds",
    type=float,
    default=None,
    help="Wait up to this many seconds for a device to connect.",
)
@click.option(
    "--scan-path",
    "scan_paths",
    multiple=True,
    type=click.Path(file_okay=False),
    help="Extra directory to search for projects (repeatable).",
)
@click.option("--debug", is_flag=True, help="Show debug logging.")
@click.version_option(__version__, prog_name="adb-logger")
def main(
    package_name: str | None,
    level_name: str | None,
    serial: str | None,
    adb_path: str | None,
    wait_seconds: float | None,
    scan_paths: tuple[str, ...],
    debug: bool,
) -> None:
    """Pick a React Native app and stream its colorized device logs."""
    if debug:
        enable_debug("DEBUG")

    try:
        code = run(package_name, level_name, serial, adb_path, wait_seconds, scan_paths)
    except KeyboardInterrupt:
        console.print("\nCancelled", style="yellow")
        code = 0
    except AdbLoggerError as e:
        logger.debug("Aborting", exc_info=True)
        console.print(f"Error: {e}", style="red")
        code = 1
    except Exception as e:
        logger.exception("Unexpected error")
        console.print(f"Fatal error: {e}", style="red")
        code = 1
    sys.exit(code)
