"""Common types and ADB command builders for the log pipeline."""

from __future__ import annotations

from enum import Enum, auto


class SessionState(Enum):
    """Lifecycle state of a pipeline session."""

    IDLE = auto()
    ARMED = auto()
    TORN_DOWN = auto()


def build_adb_command(adb_path: str, device_id: str | None, *args: str) -> list[str]:
    """Build an ADB command, optionally targeting one device.

    Args:
        adb_path: Path to ADB executable.
        device_id: Target device serial ID.
        *args: The ADB subcommand and its arguments.

    Returns:
        List of command arguments.
    """
    cmd = [adb_path]
    if device_id:
        cmd.extend(["-s", device_id])
    cmd.extend(args)
    return cmd


def build_pidof_command(
    adb_path: str, device_id: str | None, package: str
) -> list[str]:
    """Build the ADB command to get PIDs for a package.

    Args:
        adb_path: Path to ADB executable.
        device_id: Target device serial ID.
        package: Package name.

    Returns:
        List of command arguments.
    """
    return build_adb_command(adb_path, device_id, "shell", "pidof", package)


def build_logcat_command(
    adb_path: str, device_id: str | None, pid: str | None = None
) -> list[str]:
    """Build the long-running logcat command.

    The ``time`` format is always requested since severity detection relies on
    its ``" X/"`` markers. Output is scoped to ``pid`` when one is known.

    Args:
        adb_path: Path to ADB executable.
        device_id: Target device serial ID.
        pid: Process ID to restrict output to.

    Returns:
        List of command arguments.
    """
    cmd = build_adb_command(adb_path, device_id, "logcat", "-v", "time")
    if pid:
        cmd.append(f"--pid={pid}")
    return cmd
