from .device import AppRecord, Device, DeviceStatus
from .entry import AnnotatedLine, Severity

__all__ = [
    "AnnotatedLine",
    "AppRecord",
    "Device",
    "DeviceStatus",
    "Severity",
]
