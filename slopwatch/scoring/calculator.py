"""
Slop score and aggregate statistics.

The slop score is the fraction (0-1, not a percentage) of analyzed claims
judged to be lies over a trailing window. Expired claims were never
analyzed and do not count.
"""

import time
from typing import Any, Callable, Dict, Optional

from ..core.config_manager import ScoringConfig
from .store import VerdictStore
from .verdicts import VerdictStatus


class ScoreCalculator:
    """
    Derives the slop score and statistics from a VerdictStore.

    Usage:
        calculator = ScoreCalculator(store)
        score = calculator.slop_score()          # last hour
        stats = calculator.get_stats(total_claims=12, pending_claims=2)
    """

    def __init__(
        self,
        store: VerdictStore,
        config: Optional[ScoringConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.store = store
        self.config = config or ScoringConfig()
        self._clock = clock or time.time

    def slop_score(self, since: Optional[float] = None) -> float:
        """
        Lies / analyses since the given timestamp (default: slop window).

        Returns 0.0 when nothing was analyzed.
        """
        if since is None:
            since = self._clock() - self.config.slop_window_ms / 1000.0

        verdicts = self.store.since(since)
        if not verdicts:
            return 0.0
        lies = sum(1 for v in verdicts if v.status == VerdictStatus.LIE)
        return lies / len(verdicts)

    def get_stats(
        self,
        total_claims: int = 0,
        pending_claims: int = 0,
        recent_file_changes: int = 0,
    ) -> Dict[str, Any]:
        verdicts = self.store.all()

        status_breakdown = {status.value: 0 for status in VerdictStatus}
        detector_breakdown: Dict[str, int] = {}
        for verdict in verdicts:
            status_breakdown[verdict.status.value] += 1
            detector_breakdown[verdict.detector_name] = detector_breakdown.get(verdict.detector_name, 0) + 1

        return {
            "totalClaims": total_claims,
            "totalAnalyses": len(verdicts),
            "pendingClaims": pending_claims,
            "slopScore": round(self.slop_score(), 4),
            "statusBreakdown": status_breakdown,
            "detectorBreakdown": detector_breakdown,
            "recentFileChanges": recent_file_changes,
            "expiredClaims": len(self.store.expirations()),
        }
