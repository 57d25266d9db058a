"""Tests for utility functions."""

import asyncio
import logging
import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from adblogger.exceptions import DeviceQueryError, ValidationError
from adblogger.models import Device, DeviceStatus
from adblogger.utils import (
    check_devices,
    enable_debug,
    get_device_name,
    get_package_pid,
    is_package_installed,
    parse_devices_output,
    resolve_adb,
    validate_package_name,
    wait_for_device,
)


def make_query_process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0):
    process = MagicMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.kill = MagicMock()
    process.wait = AsyncMock(return_value=returncode)
    return process


@pytest.fixture
def mock_exec(mocker):
    """Mock asyncio.create_subprocess_exec."""
    return mocker.patch("asyncio.create_subprocess_exec", new_callable=AsyncMock)


@pytest.fixture
def mock_resolve_adb(mocker):
    return mocker.patch("adblogger.utils.resolve_adb", return_value="adb")


def test_resolve_adb_in_path(mocker) -> None:
    """Test resolving adb when it's in PATH."""
    resolve_adb.cache_clear()
    mocker.patch("shutil.which", return_value="/usr/bin/adb")

    assert resolve_adb() == "/usr/bin/adb"
    resolve_adb.cache_clear()


def test_resolve_adb_in_android_home(mocker) -> None:
    """Test resolving adb from ANDROID_HOME."""
    resolve_adb.cache_clear()
    mocker.patch("shutil.which", return_value=None)
    mocker.patch.dict(os.environ, {"ANDROID_HOME": "/opt/android-sdk"})
    mocker.patch("os.path.isfile", return_value=True)
    mocker.patch("os.access", return_value=True)

    expected_path = os.path.join("/opt/android-sdk", "platform-tools", "adb")
    assert resolve_adb() == expected_path
    resolve_adb.cache_clear()


def test_resolve_adb_not_found(mocker) -> None:
    """Test resolving adb when not found."""
    resolve_adb.cache_clear()
    mocker.patch("shutil.which", return_value=None)
    mocker.patch.dict(os.environ, {}, clear=True)

    with pytest.raises(FileNotFoundError):
        resolve_adb()
    resolve_adb.cache_clear()


def test_parse_devices_connected() -> None:
    """Test parsing one ready emulator."""
    status = parse_devices_output("List of devices attached\nemulator-5554\tdevice\n")

    assert status.connected is True
    assert status.count == 1
    assert status.devices == [Device(id="emulator-5554", status="device")]


def test_parse_devices_offline_filtered() -> None:
    """Test that devices not in the device state are dropped."""
    status = parse_devices_output(
        "List of devices attached\nemulator-5554\toffline\nR58M\tunauthorized\n"
    )

    assert status.connected is False
    assert status.count == 0
    assert status.devices == []


def test_parse_devices_ignores_noise() -> None:
    """Test that daemon messages and blank lines are skipped."""
    output = (
        "* daemon not running; starting now at tcp:5037\n"
        "* daemon started successfully\n"
        "List of devices attached\n"
        "\n"
        "emulator-5554\tdevice\n"
        "1234567890abc\tdevice\n"
    )
    status = parse_devices_output(output)

    assert [d.id for d in status.devices] == ["emulator-5554", "1234567890abc"]
    assert status.count == 2


def test_parse_devices_empty() -> None:
    """Test parsing an empty device list."""
    assert parse_devices_output("List of devices attached\n\n") == DeviceStatus()


@pytest.mark.asyncio
async def test_check_devices_success(mock_exec, mock_resolve_adb) -> None:
    """Test listing devices successfully."""
    mock_exec.return_value = make_query_process(
        b"List of devices attached\nemulator-5554\tdevice\n"
    )

    status = await check_devices()

    assert status.connected is True
    assert status.devices[0].id == "emulator-5554"
    args = mock_exec.call_args[0]
    assert args == ("adb", "devices")


@pytest.mark.asyncio
async def test_check_devices_adb_missing(mocker) -> None:
    """Test that a missing adb is reported as not_found."""
    mocker.patch("adblogger.utils.resolve_adb", side_effect=FileNotFoundError("no adb"))

    with pytest.raises(DeviceQueryError, match="ADB not found") as excinfo:
        await check_devices()
    assert excinfo.value.reason == "not_found"


@pytest.mark.asyncio
async def test_check_devices_spawn_missing(mock_exec) -> None:
    """Test that a bad adb path is reported as not_found."""
    mock_exec.side_effect = FileNotFoundError("adb")

    with pytest.raises(DeviceQueryError) as excinfo:
        await check_devices(adb_path="/nope/adb")
    assert excinfo.value.reason == "not_found"


@pytest.mark.asyncio
async def test_check_devices_timeout(mock_exec, mock_resolve_adb) -> None:
    """Test that a hanging adb is killed and reported as timeout."""
    process = make_query_process()

    async def hang():
        await asyncio.sleep(1.0)
        return b"", b""

    process.communicate = AsyncMock(side_effect=hang)
    mock_exec.return_value = process

    with pytest.raises(DeviceQueryError, match="timed out") as excinfo:
        await check_devices(timeout=0.01)

    assert excinfo.value.reason == "timeout"
    process.kill.assert_called_once()


@pytest.mark.asyncio
async def test_check_devices_killed(mock_exec, mock_resolve_adb) -> None:
    """Test that a signal-terminated adb is reported as killed."""
    mock_exec.return_value = make_query_process(returncode=-15)

    with pytest.raises(DeviceQueryError, match="terminated") as excinfo:
        await check_devices()
    assert excinfo.value.reason == "killed"


@pytest.mark.asyncio
async def test_check_devices_failure(mock_exec, mock_resolve_adb) -> None:
    """Test that a failing adb is reported with its stderr."""
    mock_exec.return_value = make_query_process(stderr=b"server error\n", returncode=1)

    with pytest.raises(DeviceQueryError, match="server error") as excinfo:
        await check_devices()
    assert excinfo.value.reason == "failed"


@pytest.mark.asyncio
async def test_wait_for_device_polls_until_connected(mocker) -> None:
    """Test waiting until a device shows up."""
    ready = DeviceStatus.from_devices([Device(id="emulator-5554", status="device")])
    mock_check = mocker.patch(
        "adblogger.utils.check_devices",
        new_callable=AsyncMock,
        side_effect=[DeviceStatus(), DeviceQueryError("flaky", reason="timeout"), ready],
    )

    status = await wait_for_device(timeout=5.0, poll_interval=0.01)

    assert status == ready
    assert mock_check.call_count == 3


@pytest.mark.asyncio
async def test_wait_for_device_gives_up(mocker) -> None:
    """Test that waiting returns None after the timeout."""
    mocker.patch(
        "adblogger.utils.check_devices", new_callable=AsyncMock, return_value=DeviceStatus()
    )

    assert await wait_for_device(timeout=0.05, poll_interval=0.01) is None


@pytest.mark.asyncio
async def test_wait_for_device_missing_adb(mocker) -> None:
    """Test that a missing adb stops the wait at once."""
    mocker.patch(
        "adblogger.utils.check_devices",
        new_callable=AsyncMock,
        side_effect=DeviceQueryError("ADB not found", reason="not_found"),
    )

    with pytest.raises(DeviceQueryError):
        await wait_for_device(timeout=5.0, poll_interval=0.01)


@pytest.mark.asyncio
async def test_get_package_pid_found(mock_exec, mock_resolve_adb) -> None:
    """Test resolving a running package."""
    mock_exec.return_value = make_query_process(b"1234\n")

    pid = await get_package_pid("com.example.app", device_id="device123")

    assert pid == "1234"
    args = mock_exec.call_args[0]
    assert args == ("adb", "-s", "device123", "shell", "pidof", "com.example.app")


@pytest.mark.asyncio
async def test_get_package_pid_multiple(mock_exec, mock_resolve_adb) -> None:
    """Test that the first of several PIDs is used."""
    mock_exec.return_value = make_query_process(b"1234 5678\n")

    assert await get_package_pid("com.example.app") == "1234"


@pytest.mark.asyncio
async def test_get_package_pid_not_running(mock_exec, mock_resolve_adb) -> None:
    """Test that empty output means the package is not running."""
    mock_exec.return_value = make_query_process(b"", returncode=1)

    assert await get_package_pid("com.example.app") is None


@pytest.mark.asyncio
async def test_get_package_pid_empty_success(mock_exec, mock_resolve_adb) -> None:
    """Test an empty string result with a zero exit code."""
    mock_exec.return_value = make_query_process(b"\n")

    assert await get_package_pid("com.example.app") is None


@pytest.mark.asyncio
async def test_get_package_pid_failure_logged(mock_exec, mock_resolve_adb, caplog) -> None:
    """Test that lookup failures fall back to None with a warning."""
    mock_exec.side_effect = OSError("broken pipe")

    with caplog.at_level(logging.WARNING, logger="adblogger"):
        assert await get_package_pid("com.example.app") is None
    assert "Could not resolve PID" in caplog.text


@pytest.mark.asyncio
async def test_get_package_pid_timeout(mock_exec, mock_resolve_adb) -> None:
    """Test that a hanging lookup falls back to None."""
    process = make_query_process()

    async def hang():
        await asyncio.sleep(1.0)
        return b"", b""

    process.communicate = AsyncMock(side_effect=hang)
    mock_exec.return_value = process

    assert await get_package_pid("com.example.app", timeout=0.01) is None
    process.kill.assert_called_once()


@pytest.mark.asyncio
async def test_get_device_name(mock_exec, mock_resolve_adb) -> None:
    """Test reading the device model."""
    mock_exec.return_value = make_query_process(b"Pixel 7\n")

    assert await get_device_name("emulator-5554") == "Pixel 7"
    args = mock_exec.call_args[0]
    assert args == ("adb", "-s", "emulator-5554", "shell", "getprop", "ro.product.model")


@pytest.mark.asyncio
async def test_get_device_name_falls_back_to_id(mock_exec, mock_resolve_adb) -> None:
    """Test that an unreadable model falls back to the ID."""
    mock_exec.side_effect = OSError("gone")

    assert await get_device_name("emulator-5554") == "emulator-5554"


@pytest.mark.asyncio
async def test_is_package_installed(mock_exec, mock_resolve_adb) -> None:
    """Test matching the exact package among pm results."""
    mock_exec.return_value = make_query_process(
        b"package:com.example.app\npackage:com.example.app.debug\n"
    )
    assert await is_package_installed("com.example.app") is True

    mock_exec.return_value = make_query_process(b"package:com.example.app.debug\n")
    assert await is_package_installed("com.example.app") is False


@pytest.mark.parametrize("name", ["com.example.app-2", "a", "My_App.v2", "  com.x  "])
def test_validate_package_name_accepts(name) -> None:
    """Test valid package names."""
    assert validate_package_name(name) == name.strip()


@pytest.mark.parametrize(
    "name, message",
    [
        ("123bad", "Invalid package name format"),
        ("", "required"),
        ("   ", "required"),
        ("com.example app", "Invalid package name format"),
        ("a" * 101, "too long"),
    ],
)
def test_validate_package_name_rejects(name, message) -> None:
    """Test invalid package names."""
    with pytest.raises(ValidationError, match=message):
        validate_package_name(name)


def test_enable_debug_configures_package_logger() -> None:
    """Test that enable_debug only touches the adblogger logger."""
    pkg_logger = logging.getLogger("adblogger")
    saved = list(pkg_logger.handlers), pkg_logger.level
    pkg_logger.handlers.clear()
    try:
        enable_debug("DEBUG")
        enable_debug("DEBUG")

        assert pkg_logger.level == logging.DEBUG
        assert len(pkg_logger.handlers) == 1
    finally:
        pkg_logger.handlers[:] = saved[0]
        pkg_logger.setLevel(saved[1])
