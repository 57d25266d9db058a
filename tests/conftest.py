"""Shared fakes for logcat processes and the interrupt slot."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from unittest.mock import AsyncMock, MagicMock

import pytest


class FakeInterruptSlot:
    """Records attach/detach calls and lets tests fire the interrupt."""

    def __init__(self) -> None:
        self.handler: Callable[[], None] | None = None
        self.attach_count = 0
        self.detach_count = 0

    @property
    def attached(self) -> bool:
        return self.handler is not None

    def attach(self, handler: Callable[[], None]) -> None:
        self.handler = handler
        self.attach_count += 1

    def detach(self) -> None:
        self.handler = None
        self.detach_count += 1

    def fire(self) -> None:
        assert self.handler is not None, "no interrupt handler attached"
        self.handler()


def make_process(
    stdout_lines: Sequence[bytes] = (),
    stderr_lines: Sequence[bytes] = (),
    exit_code: int | None = None,
) -> MagicMock:
    """Build a fake logcat process.

    The process emits the given lines, then either exits with ``exit_code`` or,
    when ``exit_code`` is None, keeps running until ``kill()`` is called.
    """
    exited = asyncio.Event()
    process = MagicMock()
    process.returncode = None

    def kill() -> None:
        process.returncode = -9
        exited.set()

    process.kill = MagicMock(side_effect=kill)

    def reader(lines: Sequence[bytes]) -> MagicMock:
        pending = list(lines)

        async def readline() -> bytes:
            if pending:
                return pending.pop(0)
            if exit_code is None:
                await exited.wait()
            return b""

        stream = MagicMock()
        stream.readline = AsyncMock(side_effect=readline)
        return stream

    process.stdout = reader(stdout_lines)
    process.stderr = reader(stderr_lines)

    async def wait() -> int:
        if exit_code is None:
            await exited.wait()
        elif process.returncode is None:
            process.returncode = exit_code
        return process.returncode

    process.wait = AsyncMock(side_effect=wait)
    return process


@pytest.fixture
def interrupt_slot() -> FakeInterruptSlot:
    return FakeInterruptSlot()


@pytest.fixture
def process_factory() -> Callable[..., MagicMock]:
    return make_process
