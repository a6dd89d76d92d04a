"""config-watcher — signal a process when watched files change content."""

from config_watcher.core import (
    ChangeDetector,
    FileFingerprinter,
    ReloadDispatcher,
    WatchManager,
)
from config_watcher.models import DispatchResult, FileChange, ProcessInfo, WatchConfig

__version__ = "0.1.0"

__all__ = [
    "ChangeDetector",
    "FileFingerprinter",
    "ReloadDispatcher",
    "WatchManager",
    "DispatchResult",
    "FileChange",
    "ProcessInfo",
    "WatchConfig",
]
