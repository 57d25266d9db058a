"""A single logcat invocation and its lifecycle state."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from ..filters import LineFilter
from ..models import Severity
from .common import SessionState


class PipelineSession:
    """One running logcat process for one package.

    A session starts IDLE, becomes ARMED once the coordinator has attached its
    listeners and interrupt handler, and ends TORN_DOWN. Only the coordinator
    changes its state. A torn down session is never restarted; streaming again
    requires a new session.

    Attributes:
        package_name: The package being monitored.
        pid: The resolved process ID, or None when logcat streams unscoped.
        min_severity: The severity threshold for displayed lines.
        process: The logcat subprocess.
        command: The arguments the process was started with.
        tasks: Listener tasks attached by the coordinator.
        interrupt_attached: True while the session's interrupt handler is
            registered.
        interrupted: True if the session ended because of an interrupt.
        error: The failure that ended the session, if any.
        line_filter: The filter applied to each stdout line. It also checks
            for the package name when ``pid`` is None.
    """

    def __init__(
        self,
        package_name: str,
        min_severity: Severity,
        process: asyncio.subprocess.Process,
        pid: str | None = None,
        command: Sequence[str] = (),
    ) -> None:
        self.package_name = package_name
        self.min_severity = min_severity
        self.process = process
        self.pid = pid
        self.command = list(command)
        self.state = SessionState.IDLE
        self.tasks: list[asyncio.Task[None]] = []
        self.interrupt_attached = False
        self.interrupted = False
        self.error: Exception | None = None
        self.line_filter = LineFilter(min_severity, package=None if pid else package_name)
        self._done = asyncio.Event()

    @property
    def live(self) -> bool:
        """True while output from the process may still be displayed."""
        return self.state == SessionState.ARMED

    @property
    def scoped(self) -> bool:
        """True if logcat itself restricts output to the package's process."""
        return self.pid is not None

    async def wait(self) -> None:
        """Wait until the session is torn down.

        Raises:
            Exception: The error that ended the session, if there was one.
        """
        await self._done.wait()
        if self.error is not None:
            raise self.error

    def _close(self) -> None:
        """Wake up waiters. Called by the coordinator on teardown."""
        self._done.set()

    def __repr__(self) -> str:
        return (
            f"PipelineSession(package_name={self.package_name!r}, pid={self.pid!r}, "
            f"min_severity={self.min_severity.value!r}, state={self.state.name})"
        )
