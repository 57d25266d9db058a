"""Interrupt handling and single-shot teardown of pipeline sessions."""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Callable
from typing import Any, Protocol

from ..exceptions import PipelineStateError, StreamError
from .common import SessionState
from .session import PipelineSession

logger = logging.getLogger(__name__)

LineHandler = Callable[[PipelineSession, str], None]
InterruptCallback = Callable[[PipelineSession], None]


class InterruptSlot(Protocol):
    """The single process-wide interrupt handler slot."""

    @property
    def attached(self) -> bool: ...

    def attach(self, handler: Callable[[], None]) -> None: ...

    def detach(self) -> None: ...


class SignalInterruptSlot:
    """Interrupt slot backed by SIGINT on the running event loop.

    Where the loop cannot install signal handlers (Windows event loops), the
    handler is installed with ``signal.signal`` and the previous handler is
    restored on detach.
    """

    def __init__(self, signum: int = signal.SIGINT) -> None:
        self.signum = signum
        self._loop: asyncio.AbstractEventLoop | None = None
        self._previous: Any = None
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def attach(self, handler: Callable[[], None]) -> None:
        if self._attached:
            raise PipelineStateError("An interrupt handler is already attached")

        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(self.signum, handler)
            self._loop = loop
        except (NotImplementedError, RuntimeError):
            self._loop = None
            self._previous = signal.signal(
                self.signum, lambda signum, frame: loop.call_soon_threadsafe(handler)
            )
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return

        if self._loop is not None:
            self._loop.remove_signal_handler(self.signum)
        else:
            signal.signal(self.signum, self._previous)
        self._loop = None
        self._previous = None
        self._attached = False


_default_slot: SignalInterruptSlot | None = None


def default_interrupt_slot() -> SignalInterruptSlot:
    """Return the process-wide SIGINT slot shared by default coordinators."""
    global _default_slot
    if _default_slot is None:
        _default_slot = SignalInterruptSlot()
    return _default_slot


class SessionCoordinator:
    """Arms pipeline sessions and tears them down exactly once.

    The coordinator owns everything attached to a session: the stdout and
    stderr listener tasks, the process watcher and the interrupt handler. Any
    exit path (interrupt, producer failure, producer exit) ends in
    :meth:`teardown`, which releases these resources on its first call only.

    Args:
        interrupts: The interrupt slot to register handlers in. Defaults to
            the process-wide SIGINT slot, so default coordinators never hold
            more than one handler between them.
        on_interrupt: Called with the session when an interrupt arrives, before
            teardown.
    """

    def __init__(
        self,
        interrupts: InterruptSlot | None = None,
        on_interrupt: InterruptCallback | None = None,
    ) -> None:
        self.interrupts: InterruptSlot = interrupts or default_interrupt_slot()
        self.on_interrupt = on_interrupt

    def arm(
        self,
        session: PipelineSession,
        on_stdout: LineHandler,
        on_stderr: LineHandler,
    ) -> None:
        """Attach listeners and the interrupt handler to an idle session.

        Args:
            session: The session to arm.
            on_stdout: Called with each decoded stdout line.
            on_stderr: Called with each decoded stderr line.

        Raises:
            PipelineStateError: If the session is not idle, or another
                session's interrupt handler is still attached.
        """
        if session.state is not SessionState.IDLE:
            raise PipelineStateError(
                f"Cannot arm session in state {session.state.name}"
            )
        if self.interrupts.attached:
            raise PipelineStateError(
                "An interrupt handler from a previous session is still attached"
            )

        self.interrupts.attach(lambda: self._handle_interrupt(session))
        session.interrupt_attached = True
        session.state = SessionState.ARMED

        process = session.process
        if process.stdout:
            session.tasks.append(
                asyncio.create_task(
                    self._read_loop(session, process.stdout, on_stdout),
                    name="adblogger-stdout",
                )
            )
        if process.stderr:
            session.tasks.append(
                asyncio.create_task(
                    self._read_loop(session, process.stderr, on_stderr),
                    name="adblogger-stderr",
                )
            )
        session.tasks.append(
            asyncio.create_task(self._watch(session), name="adblogger-watch")
        )
        logger.debug("Armed %r", session)

    def teardown(
        self, session: PipelineSession, error: Exception | None = None
    ) -> bool:
        """Release a session's process, listeners and interrupt handler.

        Safe to call any number of times and from any exit path; only the first
        call has an effect.

        Args:
            session: The session to tear down.
            error: The failure that caused the teardown, if any. It is raised
                from ``session.wait()``.

        Returns:
            True if this call performed the teardown, False if it had already
            happened.
        """
        if session.state is SessionState.TORN_DOWN:
            return False
        session.state = SessionState.TORN_DOWN
        session.error = error

        process = session.process
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass

        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        for task in session.tasks:
            if task is not current and not task.done():
                task.cancel()
        session.tasks.clear()

        if session.interrupt_attached:
            self.interrupts.detach()
            session.interrupt_attached = False

        session._close()
        logger.debug("Tore down %r (error=%r)", session, error)
        return True

    def _handle_interrupt(self, session: PipelineSession) -> None:
        if not session.live:
            return
        session.interrupted = True
        if self.on_interrupt:
            self.on_interrupt(session)
        self.teardown(session)

    async def _read_loop(
        self,
        session: PipelineSession,
        stream: asyncio.StreamReader,
        handler: LineHandler,
    ) -> None:
        """Feed lines from one output stream to a handler, in order."""
        try:
            while session.live:
                line_bytes = await stream.readline()
                if not line_bytes:
                    break
                if not session.live:
                    break
                handler(session, line_bytes.decode("utf-8", errors="replace"))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Error reading logcat output: %s", e)
            self.teardown(session, StreamError(f"Failed to read logcat output: {e}"))

    async def _watch(self, session: PipelineSession) -> None:
        """Tear the session down once the process exits and output is drained."""
        returncode = await session.process.wait()

        readers = [t for t in session.tasks if t is not asyncio.current_task()]
        if readers:
            await asyncio.gather(*readers, return_exceptions=True)

        # Ctrl+C reaches logcat too; its exit may be seen before our handler runs
        if returncode == -signal.SIGINT or session.interrupted:
            self._handle_interrupt(session)
        elif returncode:
            logger.error("logcat exited with code %s", returncode)
            self.teardown(
                session, StreamError(f"ADB logcat exited with code {returncode}")
            )
        else:
            self.teardown(session)
