"""
Verdicts: the terminal classification of a claim.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


class VerdictStatus(str, Enum):
    """Outcome of analyzing a claim against file changes."""
    VERIFIED = "verified"
    LIE = "lie"
    PARTIAL = "partial"
    UNKNOWN = "unknown"


def new_verdict_id() -> str:
    return f"verdict_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class Verdict:
    """
    Result of analyzing one claim.

    Created exactly once per claim and never mutated. Equality ignores the
    id and resolution time, so two analyses of identical input compare equal.
    """
    claim_id: str
    status: VerdictStatus
    confidence: float
    reason: str
    evidence: Tuple[str, ...] = ()
    detector_name: str = "none"
    resolved_at: float = field(default_factory=time.time, compare=False)
    id: str = field(default_factory=new_verdict_id, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "status", VerdictStatus(self.status))
        object.__setattr__(self, "confidence", min(1.0, max(0.0, float(self.confidence))))
        object.__setattr__(self, "evidence", tuple(self.evidence))

    @property
    def is_lie(self) -> bool:
        return self.status == VerdictStatus.LIE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "claim_id": self.claim_id,
            "status": self.status.value,
            "confidence": round(self.confidence, 4),
            "reason": self.reason,
            "evidence": list(self.evidence),
            "detector_name": self.detector_name,
            "resolved_at": self.resolved_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Verdict":
        return cls(
            id=data.get("id") or new_verdict_id(),
            claim_id=data["claim_id"],
            status=VerdictStatus(data["status"]),
            confidence=data.get("confidence", 0.0),
            reason=data.get("reason", ""),
            evidence=tuple(data.get("evidence", ())),
            detector_name=data.get("detector_name", "none"),
            resolved_at=data.get("resolved_at", time.time()),
        )


@dataclass(frozen=True)
class Expiration:
    """
    Terminal record for a claim that never saw correlated activity.

    Kept apart from verdicts so that expired claims never count as analyses.
    """
    claim_id: str
    expired_at: float
    reason: str = "stale claim, no correlated activity"

    @property
    def status(self) -> VerdictStatus:
        return VerdictStatus.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claim_id": self.claim_id,
            "status": "expired",
            "reason": self.reason,
            "expired_at": self.expired_at,
        }
