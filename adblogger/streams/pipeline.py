"""Log pipeline: spawns ADB logcat and displays its filtered, colored output."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from rich.console import Console
from rich.text import Text

from .. import utils
from ..colors import annotate
from ..exceptions import LaunchError, PipelineStateError
from ..filters import DEFAULT_SEVERITY
from ..models import AnnotatedLine, Severity
from .common import build_logcat_command
from .coordinator import SessionCoordinator
from .session import PipelineSession

logger = logging.getLogger(__name__)

OutputSink = Callable[[AnnotatedLine], None]
ErrorSink = Callable[[str], None]

# logcat lines can be long (stack traces, JSON payloads)
STREAM_LIMIT = 1024 * 1024
REAP_TIMEOUT = 2.0


class LogPipeline:
    """Streams the device log of one package through the severity filter.

    The pipeline resolves the package's process ID, starts ``adb logcat -v
    time`` (scoped to that process when it is running), and sends every line
    that passes the filter, colored by severity, to the output sink. Lines on
    stderr go to the error sink. Lifecycle and interrupt handling are delegated
    to a :class:`SessionCoordinator`.

    Usage:
        ```python
        pipeline = LogPipeline()
        await pipeline.run("com.example.app", Severity.WARNING)
        ```

    Args:
        adb_path: Path to ADB executable. If None, resolved automatically.
        device_id: Target device serial ID.
        output: Sink for displayed lines. Defaults to printing on the console.
        errors: Sink for stderr output. Defaults to printing on stderr.
        coordinator: Coordinator to arm sessions with. Defaults to one bound to
            SIGINT that announces the stop on the console.
        console: Console used by the default sinks.
        pid_timeout: Timeout in seconds for the process ID lookup.
    """

    def __init__(
        self,
        adb_path: str | None = None,
        device_id: str | None = None,
        output: OutputSink | None = None,
        errors: ErrorSink | None = None,
        coordinator: SessionCoordinator | None = None,
        console: Console | None = None,
        pid_timeout: float | None = None,
    ) -> None:
        self.adb_path = adb_path
        self.device_id = device_id
        self.console = console or Console(highlight=False)
        self.error_console = Console(stderr=True, highlight=False)
        self.output = output or self._print_line
        self.errors = errors or self._print_error
        self.coordinator = coordinator or SessionCoordinator(
            on_interrupt=self._announce_stop
        )
        self.pid_timeout = pid_timeout or utils.PID_QUERY_TIMEOUT
        self.session: PipelineSession | None = None

    async def start(
        self, package_name: str, min_severity: Any = DEFAULT_SEVERITY
    ) -> PipelineSession:
        """Start streaming logs for a package.

        Args:
            package_name: The package to monitor.
            min_severity: The lowest severity to display. Unknown values fall
                back to INFO.

        Returns:
            The armed session.

        Raises:
            LaunchError: If logcat cannot be spawned.
            PipelineStateError: If a session is still running.
        """
        if self.session is not None and self.session.live:
            raise PipelineStateError(
                f"Already streaming logs for {self.session.package_name}"
            )

        try:
            severity = Severity.parse(min_severity)
        except ValueError:
            logger.warning(
                "Unknown log level %r, using %s", min_severity, DEFAULT_SEVERITY.label
            )
            severity = DEFAULT_SEVERITY

        try:
            adb_path = self.adb_path or utils.resolve_adb()
        except FileNotFoundError as e:
            raise LaunchError(str(e)) from e

        pid = await utils.get_package_pid(
            package_name, adb_path, self.device_id, timeout=self.pid_timeout
        )
        if pid is None:
            logger.info(
                "No running process for %s, filtering the full log by name",
                package_name,
            )

        cmd = build_logcat_command(adb_path, self.device_id, pid)
        logger.debug("Starting %s", " ".join(cmd))
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=STREAM_LIMIT,
            )
        except OSError as e:
            raise LaunchError(f"Failed to start ADB logcat: {e}") from e

        session = PipelineSession(
            package_name, severity, process, pid=pid, command=cmd
        )
        try:
            self.coordinator.arm(session, self.handle_stdout, self.handle_stderr)
        except PipelineStateError:
            self.coordinator.teardown(session)
            raise

        self.session = session
        return session

    async def wait(self, session: PipelineSession) -> None:
        """Wait for a session to end and reap its process.

        Raises:
            StreamError: If the session ended because logcat failed.
        """
        try:
            await session.wait()
        finally:
            await self._reap(session)

    async def run(
        self, package_name: str, min_severity: Any = DEFAULT_SEVERITY
    ) -> PipelineSession:
        """Start a session and wait until it is torn down.

        Returns:
            The finished session. ``session.interrupted`` tells whether it was
            stopped by an interrupt.

        Raises:
            LaunchError: If logcat cannot be spawned.
            StreamError: If logcat failed after it was started.
        """
        session = await self.start(package_name, min_severity)
        await self.wait(session)
        return session

    def stop(self) -> bool:
        """Tear down the current session, if any.

        Returns:
            True if a running session was stopped.
        """
        if self.session is None:
            return False
        return self.coordinator.teardown(self.session)

    def handle_stdout(self, session: PipelineSession, chunk: str) -> None:
        """Filter, color and emit the lines of one stdout chunk."""
        for line in chunk.splitlines():
            if not session.live:
                return
            if not line.strip():
                continue
            if not session.line_filter(line):
                continue
            self.output(annotate(line))

    def handle_stderr(self, session: PipelineSession, chunk: str) -> None:
        """Report stderr output without ending the session."""
        text = chunk.strip()
        if text:
            self.errors(text)

    async def _reap(self, session: PipelineSession) -> None:
        try:
            await asyncio.wait_for(session.process.wait(), timeout=REAP_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("logcat process did not exit after %ss", REAP_TIMEOUT)

    def _print_line(self, line: AnnotatedLine) -> None:
        self.console.print(line.render(), soft_wrap=True)

    def _print_error(self, text: str) -> None:
        self.error_console.print(Text.assemble(("ADB error: ", "red"), text))

    def _announce_stop(self, session: PipelineSession) -> None:
        self.console.print("\n\n🛑 Stopping log monitoring...", style="yellow")
