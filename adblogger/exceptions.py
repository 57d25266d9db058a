"""Exceptions for adblogger."""

from __future__ import annotations

from typing import Literal

DeviceQueryReason = Literal["not_found", "timeout", "killed", "failed"]


class AdbLoggerError(Exception):
    """Base exception for all adblogger errors.

    Catching this exception allows handling any error raised by the device
    queries, the log pipeline or input validation.
    """


class DeviceQueryError(AdbLoggerError):
    """Raised when the device enumeration command cannot produce a result.

    The ``reason`` attribute tells the failure modes apart so callers can show
    a matching hint:

    - ``"not_found"``: the ADB executable could not be found or spawned.
    - ``"timeout"``: the command did not finish in time.
    - ``"killed"``: the command was terminated by a signal.
    - ``"failed"``: the command exited with an error.
    """

    def __init__(self, message: str, reason: DeviceQueryReason = "failed") -> None:
        super().__init__(message)
        self.reason: DeviceQueryReason = reason


class LaunchError(AdbLoggerError):
    """Raised when the logcat process cannot be spawned.

    This usually means ADB is not installed or not on the execution path.
    Monitoring is aborted and not retried.
    """


class StreamError(AdbLoggerError):
    """Raised when the logcat process fails after it was launched.

    The session is torn down before this error is reported, so no process or
    signal handler is left behind.
    """


class ValidationError(AdbLoggerError):
    """Raised when user input, such as a package name, is malformed."""


class PipelineStateError(AdbLoggerError):
    """Raised on an illegal session lifecycle transition.

    Examples are arming a session twice, or arming a new session while the
    interrupt handler of a previous one is still attached.
    """
