"""adblogger package.

This package streams the device log of an Android / React Native app from
``adb logcat``, keeping only lines at or above a chosen severity and coloring
each line by its severity marker. Ctrl+C (or the log process exiting) tears the
stream down exactly once.

Quick Start:
    ```python
    import asyncio
    from adblogger import LogPipeline, Severity

    asyncio.run(LogPipeline().run("com.example.app", Severity.WARNING))
    ```

The ``adb-logger`` command wraps this with device checks, project discovery and
interactive menus.
"""

__version__ = "1.0.0"

from .colors import annotate
from .exceptions import (
    AdbLoggerError,
    DeviceQueryError,
    LaunchError,
    PipelineStateError,
    StreamError,
    ValidationError,
)
from .filters import LineFilter, inclusion_set, matches
from .models import AnnotatedLine, AppRecord, Device, DeviceStatus, Severity
from .streams import LogPipeline, PipelineSession, SessionCoordinator
from .utils import (
    check_devices,
    enable_debug,
    get_package_pid,
    resolve_adb,
    validate_package_name,
)

__all__ = [
    "AnnotatedLine",
    "AppRecord",
    "Device",
    "DeviceStatus",
    "Severity",
    "LineFilter",
    "matches",
    "inclusion_set",
    "annotate",
    "LogPipeline",
    "PipelineSession",
    "SessionCoordinator",
    "check_devices",
    "get_package_pid",
    "resolve_adb",
    "validate_package_name",
    "enable_debug",
    "AdbLoggerError",
    "DeviceQueryError",
    "LaunchError",
    "PipelineStateError",
    "StreamError",
    "ValidationError",
]
