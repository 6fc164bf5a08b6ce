"""
Clock abstraction for the correlation engine.

The engine never calls time.time() directly; tests inject a ManualClock and
advance it instead of sleeping.
"""

import threading
import time


class Clock:
    """Wall clock in epoch seconds."""

    def now(self) -> float:
        return time.time()

    def __call__(self) -> float:
        return self.now()


class SystemClock(Clock):
    pass


class ManualClock(Clock):
    """
    A clock that only moves when told to.

    Usage:
        clock = ManualClock(1_700_000_000.0)
        clock.advance(2.5)
    """

    def __init__(self, start: float = 1_700_000_000.0):
        self._now = float(start)
        self._lock = threading.Lock()

    def now(self) -> float:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("ManualClock cannot go backwards")
        with self._lock:
            self._now += seconds
            return self._now

    def set(self, timestamp: float) -> None:
        with self._lock:
            self._now = float(timestamp)
