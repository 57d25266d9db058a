"""Utility functions for adblogger.

This module provides the short-lived ADB queries (device list, process ID,
device properties), package name validation and logging configuration.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import os
import re
import shutil
import sys

from rich.logging import RichHandler

from .exceptions import DeviceQueryError, ValidationError
from .models import Device, DeviceStatus
from .streams.common import build_adb_command, build_pidof_command

logger = logging.getLogger(__name__)

DEVICE_QUERY_TIMEOUT = 10.0
PID_QUERY_TIMEOUT = 5.0

PACKAGE_NAME_MAX_LENGTH = 100
PACKAGE_NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9._-]*$")


@functools.lru_cache(maxsize=1)
def resolve_adb() -> str:
    """Resolve the path to the ADB executable.

    Searches for 'adb' or 'adb.exe' in the following order:
    1. PATH environment variable
    2. ANDROID_HOME/platform-tools
    3. ANDROID_SDK_ROOT/platform-tools

    On WSL, 'adb.exe' is also searched to support Windows ADB server connection.

    Returns:
        Path to the ADB executable.

    Raises:
        FileNotFoundError: If ADB executable cannot be found.
    """
    candidates = ["adb"]

    is_wsl = False
    if sys.platform == "linux":
        try:
            with open("/proc/version", "r") as f:
                if "microsoft" in f.read().lower():
                    is_wsl = True
        except OSError:
            pass

    if sys.platform == "win32" or is_wsl:
        candidates.append("adb.exe")

    for candidate in candidates:
        path = shutil.which(candidate)
        if path:
            return path

    for var in ("ANDROID_HOME", "ANDROID_SDK_ROOT"):
        root = os.environ.get(var)
        if root:
            for candidate in candidates:
                path = os.path.join(root, "platform-tools", candidate)
                if os.path.isfile(path) and os.access(path, os.X_OK):
                    return path

    raise FileNotFoundError(
        "Could not find 'adb' or 'adb.exe' in PATH or Android SDK directories."
    )


def enable_debug(level: str | int = "INFO") -> None:
    """Enable logging output for adblogger.

    Note: This configures the 'adblogger' logger only and leaves the root
    logger alone. Records are rendered with rich so they do not garble the
    colored log stream.

    Args:
        level: Logging level (e.g., "DEBUG", "INFO", logging.DEBUG).
    """
    pkg_logger = logging.getLogger("adblogger")
    pkg_logger.setLevel(level)

    if not pkg_logger.handlers:
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
        pkg_logger.addHandler(handler)


def validate_package_name(value: str) -> str:
    """Validate a package name typed in by the user.

    Args:
        value: The raw input.

    Returns:
        The input with surrounding whitespace removed.

    Raises:
        ValidationError: If the name is empty, too long, or contains characters
            outside letters, digits, dots, underscores and hyphens, or does not
            start with a letter.
    """
    name = (value or "").strip()
    if not name:
        raise ValidationError("Package name is required")
    if len(name) > PACKAGE_NAME_MAX_LENGTH:
        raise ValidationError(
            f"Package name too long (max {PACKAGE_NAME_MAX_LENGTH} characters)"
        )
    if not PACKAGE_NAME_PATTERN.match(name):
        raise ValidationError(
            "Invalid package name format "
            "(use letters, numbers, dots, underscores, hyphens)"
        )
    return name


def parse_devices_output(output: str) -> DeviceStatus:
    """Parse the output of ``adb devices``.

    Lines after the "List of devices attached" header are expected to be
    ``<id>\\t<status>``. Only entries whose status is exactly ``device`` count as
    connected; ``offline`` or ``unauthorized`` devices are dropped.

    Args:
        output: The command's standard output.

    Returns:
        The device status.
    """
    devices: list[Device] = []
    for line in output.strip().splitlines():
        if not line.strip() or "List of devices" in line:
            continue

        parts = line.split("\t")
        if len(parts) < 2:
            continue

        device_id, status = parts[0].strip(), parts[1].strip()
        if not device_id or not status:
            continue
        if status != "device":
            logger.debug("Ignoring device %s in state %s", device_id, status)
            continue

        devices.append(Device(id=device_id, status=status))

    return DeviceStatus.from_devices(devices)


async def _run_adb(cmd: list[str], timeout: float | None) -> tuple[int, str, str]:
    """Run a short-lived ADB command and collect its output.

    Raises:
        OSError: If the command cannot be spawned.
        asyncio.TimeoutError: If it does not finish within ``timeout``; the
            process is killed first.
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        stdout_data, stderr_data = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        try:
            process.kill()
            await process.wait()
        except ProcessLookupError:
            pass
        raise

    returncode = process.returncode if process.returncode is not None else 0
    return (
        returncode,
        stdout_data.decode("utf-8", errors="replace"),
        stderr_data.decode("utf-8", errors="replace"),
    )


async def check_devices(
    adb_path: str | None = None, timeout: float = DEVICE_QUERY_TIMEOUT
) -> DeviceStatus:
    """List devices that are connected and ready.

    Args:
        adb_path: Path to ADB executable. If None, resolved automatically.
        timeout: Timeout in seconds for the ADB command. Defaults to 10.0.

    Returns:
        The device status. An empty list is not an error.

    Raises:
        DeviceQueryError: If ADB is missing, times out, is killed or fails.
    """
    try:
        adb = adb_path or resolve_adb()
        returncode, stdout, stderr = await _run_adb([adb, "devices"], timeout)
    except FileNotFoundError as e:
        raise DeviceQueryError(
            "ADB not found. Please install Android SDK and add ADB to PATH.",
            reason="not_found",
        ) from e
    except asyncio.TimeoutError as e:
        raise DeviceQueryError(
            "ADB command timed out. Device may be unresponsive.", reason="timeout"
        ) from e
    except OSError as e:
        raise DeviceQueryError(f"Failed to run adb devices: {e}") from e

    if returncode < 0:
        raise DeviceQueryError("ADB command was terminated.", reason="killed")
    if returncode != 0:
        raise DeviceQueryError(f"Failed to run adb devices: {stderr.strip()}")

    return parse_devices_output(stdout)


async def wait_for_device(
    timeout: float = 30.0,
    adb_path: str | None = None,
    poll_interval: float = 1.0,
) -> DeviceStatus | None:
    """Poll the device list until a device is ready.

    Args:
        timeout: Maximum time to wait in seconds.
        adb_path: Path to ADB executable.
        poll_interval: Delay between polls in seconds.

    Returns:
        The first connected device status, or None if the timeout expired.

    Raises:
        DeviceQueryError: If ADB cannot be found, since waiting cannot help.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    while True:
        try:
            status = await check_devices(adb_path)
        except DeviceQueryError as e:
            if e.reason == "not_found":
                raise
            logger.debug("Device query failed while waiting: %s", e)
        else:
            if status.connected:
                return status

        if loop.time() + poll_interval > deadline:
            return None
        await asyncio.sleep(poll_interval)


async def get_package_pid(
    package: str,
    adb_path: str | None = None,
    device_id: str | None = None,
    timeout: float = PID_QUERY_TIMEOUT,
) -> str | None:
    """Look up the process ID of a running package.

    A package that is not running is not an error. Lookup failures are logged
    and reported the same way, since the caller can still stream unscoped.
    When ``pidof`` reports several processes the first one is returned.

    Args:
        package: Package name.
        adb_path: Path to ADB executable.
        device_id: Target device serial ID.
        timeout: Timeout in seconds for the lookup.

    Returns:
        The process ID as printed by ``pidof``, or None.
    """
    try:
        cmd = build_pidof_command(adb_path or resolve_adb(), device_id, package)
        returncode, stdout, _ = await _run_adb(cmd, timeout)
    except asyncio.TimeoutError:
        logger.warning("Timed out resolving PID for %s after %ss", package, timeout)
        return None
    except OSError as e:
        logger.warning("Could not resolve PID for %s: %s", package, e)
        return None

    tokens = stdout.split()
    if returncode != 0 or not tokens:
        logger.debug("No running process for %s", package)
        return None
    return tokens[0]


async def get_device_name(
    device_id: str, adb_path: str | None = None, timeout: float = PID_QUERY_TIMEOUT
) -> str:
    """Return the device model name, or the device ID if it cannot be read."""
    try:
        cmd = build_adb_command(
            adb_path or resolve_adb(), device_id, "shell", "getprop", "ro.product.model"
        )
        returncode, stdout, _ = await _run_adb(cmd, timeout)
    except (OSError, asyncio.TimeoutError) as e:
        logger.debug("Could not read model of %s: %s", device_id, e)
        return device_id

    name = stdout.strip()
    if returncode != 0 or not name:
        return device_id
    return name


async def is_package_installed(
    package: str,
    adb_path: str | None = None,
    device_id: str | None = None,
    timeout: float = PID_QUERY_TIMEOUT,
) -> bool:
    """Check whether a package is installed on the device.

    Returns:
        True if ``pm list packages`` reports the exact package name.
    """
    try:
        cmd = build_adb_command(
            adb_path or resolve_adb(), device_id, "shell", "pm", "list", "packages", package
        )
        returncode, stdout, _ = await _run_adb(cmd, timeout)
    except (OSError, asyncio.TimeoutError) as e:
        logger.debug("Could not list packages: %s", e)
        return False

    if returncode != 0:
        return False
    return f"package:{package}" in stdout.split()
