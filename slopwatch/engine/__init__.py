"""
Correlation engine for SlopWatch.

Usage:
    from slopwatch.engine import CorrelationEngine, EngineRunner

    engine = CorrelationEngine()
    runner = EngineRunner(engine)
    runner.start()
"""

from .clock import Clock, ManualClock, SystemClock
from .correlation import CorrelationEngine, PendingClaim
from .messages import AnalyzeAll, ChangeObserved, ClaimArrived, Shutdown
from .relatedness import in_evaluation_range, is_related
from .runner import EngineRunner
from .timers import TimerHandle, TimerQueue

__all__ = [
    "Clock",
    "ManualClock",
    "SystemClock",
    "CorrelationEngine",
    "PendingClaim",
    "EngineRunner",
    "AnalyzeAll",
    "ChangeObserved",
    "ClaimArrived",
    "Shutdown",
    "TimerHandle",
    "TimerQueue",
    "in_evaluation_range",
    "is_related",
]
