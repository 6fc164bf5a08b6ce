"""
Verdicts, verdict storage and the slop score.
"""

from .calculator import ScoreCalculator
from .store import VerdictStore
from .verdicts import Expiration, Verdict, VerdictStatus, new_verdict_id

__all__ = [
    "Expiration",
    "ScoreCalculator",
    "Verdict",
    "VerdictStatus",
    "VerdictStore",
    "new_verdict_id",
]
