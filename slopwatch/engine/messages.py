"""
Typed messages accepted by the engine runner's inbound queue.
"""

from dataclasses import dataclass
from typing import Union

from ..claims.models import Claim
from ..watching.events import FileChangeEvent


@dataclass(frozen=True)
class ClaimArrived:
    claim: Claim


@dataclass(frozen=True)
class ChangeObserved:
    change: FileChangeEvent


@dataclass(frozen=True)
class AnalyzeAll:
    """Evaluate every pending claim now."""


@dataclass(frozen=True)
class Shutdown:
    pass


EngineMessage = Union[ClaimArrived, ChangeObserved, AnalyzeAll, Shutdown]
