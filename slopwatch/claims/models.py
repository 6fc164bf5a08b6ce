"""
Claim data model.

A Claim is a structured extraction of an assistant's statement that it
changed code ("I added media queries", "error handling has been fixed").
Claims are immutable once created; the correlation engine tracks their
lifecycle separately through ClaimState.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ClaimDomain(str, Enum):
    """Technical area a claim is about."""
    STYLING = "styling"
    SCRIPTING = "scripting"
    SECURITY = "security"
    TESTING = "testing"
    ACCESSIBILITY = "accessibility"
    GENERIC = "generic"


class ClaimAction(str, Enum):
    """What the claim says was done."""
    ADD = "add"
    FIX = "fix"
    IMPROVE = "improve"
    UPDATE = "update"
    REMOVE = "remove"
    CONFIGURE = "configure"


class ClaimState(str, Enum):
    """
    Lifecycle of a claim inside the correlation engine.

    PENDING -> SCHEDULED -> EVALUATING -> RESOLVED
    PENDING/SCHEDULED -> EXPIRED (stale, no correlated activity)
    """
    PENDING = "pending"
    SCHEDULED = "scheduled"
    EVALUATING = "evaluating"
    RESOLVED = "resolved"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in (ClaimState.RESOLVED, ClaimState.EXPIRED)


def new_claim_id() -> str:
    return f"claim_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class Claim:
    """
    A single claim extracted from assistant output.

    Attributes:
        id: Unique identifier
        text: The sentence or phrase the claim was extracted from
        domain: Technical domain (styling, scripting, ...)
        action: Claimed action (add, fix, ...)
        target: Free-text description of what was changed
        confidence: Extraction confidence (0-1)
        created_at: Epoch seconds when the claim was made
        session_id: Conversation the claim came from, if any
        sources: Extraction strategies that produced this claim
    """
    text: str
    domain: ClaimDomain = ClaimDomain.GENERIC
    action: ClaimAction = ClaimAction.UPDATE
    target: str = ""
    confidence: float = 0.5
    created_at: float = field(default_factory=time.time)
    id: str = field(default_factory=new_claim_id)
    session_id: Optional[str] = None
    sources: Tuple[str, ...] = ()

    def __post_init__(self):
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "domain", ClaimDomain(self.domain))
        object.__setattr__(self, "action", ClaimAction(self.action))
        object.__setattr__(self, "confidence", min(1.0, max(0.0, float(self.confidence))))
        object.__setattr__(self, "sources", tuple(self.sources))

    @property
    def normalized_text(self) -> str:
        return self.text.lower()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "text": self.text,
            "domain": self.domain.value,
            "action": self.action.value,
            "target": self.target,
            "confidence": self.confidence,
            "created_at": self.created_at,
            "session_id": self.session_id,
            "sources": list(self.sources),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Claim":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or new_claim_id(),
            text=data.get("text", ""),
            domain=ClaimDomain(data.get("domain", "generic")),
            action=ClaimAction(data.get("action", "update")),
            target=data.get("target", ""),
            confidence=data.get("confidence", 0.5),
            created_at=data.get("created_at", time.time()),
            session_id=data.get("session_id"),
            sources=tuple(data.get("sources", ())),
        )
