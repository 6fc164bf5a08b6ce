"""
File watching for SlopWatch.

Usage:
    from slopwatch.watching import FileChangeWatcher

    watcher = FileChangeWatcher()
    watcher.start(".", exclude=["*.min.js"], sink=print)
"""

from .events import ChangeKind, FileChangeEvent
from .filters import DEFAULT_EXCLUDED_DIRS, SUPPORTED_EXTENSIONS, PathFilter, is_supported_file
from .watcher import FileChangeWatcher

__all__ = [
    "ChangeKind",
    "FileChangeEvent",
    "FileChangeWatcher",
    "PathFilter",
    "DEFAULT_EXCLUDED_DIRS",
    "SUPPORTED_EXTENSIONS",
    "is_supported_file",
]
