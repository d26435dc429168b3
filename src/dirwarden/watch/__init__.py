"""Watch daemon: polling monitor, lifecycle helpers and the service loop."""

from .errors import WatchError, WatchStartupError
from .lifecycle import (
    SHUTDOWN_SIGNALS,
    ShutdownToken,
    WatchLog,
    install_signal_handlers,
    remove_pid_file,
    write_pid_file,
)
from .monitor import DirectoryMonitor, ObservedFile, ScanResult
from .service import CycleReport, WatchService

__all__ = [
    "CycleReport",
    "DirectoryMonitor",
    "ObservedFile",
    "SHUTDOWN_SIGNALS",
    "ScanResult",
    "ShutdownToken",
    "WatchError",
    "WatchLog",
    "WatchService",
    "WatchStartupError",
    "install_signal_handlers",
    "remove_pid_file",
    "write_pid_file",
]
