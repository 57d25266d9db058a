from .common import SessionState
from .coordinator import (
    InterruptSlot,
    SessionCoordinator,
    SignalInterruptSlot,
    default_interrupt_slot,
)
from .pipeline import LogPipeline
from .session import PipelineSession

__all__ = [
    "LogPipeline",
    "PipelineSession",
    "SessionCoordinator",
    "SessionState",
    "InterruptSlot",
    "SignalInterruptSlot",
    "default_interrupt_slot",
]
