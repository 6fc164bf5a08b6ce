"""
Error taxonomy for SlopWatch.

Only ConfigurationError is allowed to stop the process, and only during
initialization. Every other error is caught at the component boundary
where it happens and turned into a log line or an `unknown` verdict.
"""

from typing import Optional


class SlopWatchError(Exception):
    """Base class for all SlopWatch errors."""

    code = "SLOPWATCH_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class ConfigurationError(SlopWatchError, ValueError):
    """Invalid window, threshold or detector configuration."""

    code = "CONFIG_ERROR"


class DetectorFailure(SlopWatchError):
    """A detector could not analyze a claim."""

    code = "DETECTOR_ERROR"

    def __init__(self, message: str, detector: str):
        super().__init__(message)
        self.detector = detector


class WatcherIOError(SlopWatchError):
    """A single file could not be read by the watcher."""

    code = "WATCHER_IO_ERROR"

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path


class EngineNotRunningError(SlopWatchError):
    """Raised when events are submitted to a stopped engine runner."""

    code = "ENGINE_NOT_RUNNING"


__all__ = [
    "SlopWatchError",
    "ConfigurationError",
    "DetectorFailure",
    "WatcherIOError",
    "EngineNotRunningError",
]
