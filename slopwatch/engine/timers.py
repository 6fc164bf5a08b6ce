"""
Cancellable delay queue.

A min-heap of timer handles keyed by deadline. Cancellation marks the
handle and leaves it in the heap; cancelled handles are discarded when they
reach the top. Per-claim evaluation timers and the periodic sweep share
one queue.
"""

import heapq
import itertools
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(order=True)
class TimerHandle:
    deadline: float
    seq: int
    key: str = field(compare=False)
    kind: str = field(compare=False, default="evaluate")
    cancelled: bool = field(compare=False, default=False)
    fired: bool = field(compare=False, default=False)

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)


class TimerQueue:
    """
    Usage:
        timers = TimerQueue()
        handle = timers.schedule(now + 10, "claim_abc")
        timers.cancel(handle)            # idempotent
        for due in timers.pop_due(now):
            ...
    """

    def __init__(self):
        self._heap: List[TimerHandle] = []
        self._counter = itertools.count()
        self._active = 0

    def schedule(self, deadline: float, key: str, kind: str = "evaluate") -> TimerHandle:
        handle = TimerHandle(deadline=deadline, seq=next(self._counter), key=key, kind=kind)
        heapq.heappush(self._heap, handle)
        self._active += 1
        return handle

    def cancel(self, handle: Optional[TimerHandle]) -> bool:
        """
        Cancel a timer.

        Returns:
            True if the timer was active; False if it had already fired or
            been cancelled (a no-op)
        """
        if handle is None or not handle.active:
            return False
        handle.cancelled = True
        self._active -= 1
        return True

    def pop_due(self, now: float) -> List[TimerHandle]:
        """Remove and return every active timer whose deadline has passed, earliest first."""
        due = []
        while self._heap and self._heap[0].deadline <= now:
            handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            handle.fired = True
            self._active -= 1
            due.append(handle)
        return due

    def next_deadline(self) -> Optional[float]:
        while self._heap and self._heap[0].cancelled:
            heapq.heappop(self._heap)
        return self._heap[0].deadline if self._heap else None

    def clear(self) -> None:
        for handle in self._heap:
            handle.cancelled = True
        self._heap = []
        self._active = 0

    def __len__(self) -> int:
        return self._active
