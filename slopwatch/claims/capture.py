"""
Conversation capture.

Stores conversation messages per session and turns assistant messages into
claims. Claims are handed to a sink (normally the engine runner's inbound
queue); the capture layer never touches engine state directly.
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .extractor import ClaimExtractor
from .models import Claim, ClaimAction, ClaimDomain

logger = logging.getLogger(__name__)

ClaimSink = Callable[[Claim], None]

# Claims newer than this count as recent activity in get_stats()
RECENT_ACTIVITY_SECONDS = 300.0


@dataclass(frozen=True)
class ConversationMessage:
    """A single message in a captured conversation."""
    session_id: str
    role: str
    content: str
    timestamp: float = field(default_factory=time.time)
    id: str = field(default_factory=lambda: f"msg_{uuid.uuid4().hex[:12]}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp,
        }


class ConversationCapture:
    """
    Captures conversation messages and extracts claims from assistant turns.

    Usage:
        capture = ConversationCapture(extractor, sink=runner.submit_claim)
        claims = capture.submit_message("session-1", "assistant", "I added tests")
    """

    def __init__(
        self,
        extractor: Optional[ClaimExtractor] = None,
        sink: Optional[ClaimSink] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the capture layer.

        Args:
            extractor: Claim extractor (default-configured when omitted)
            sink: Callable receiving every extracted or manual claim
            clock: Time source returning epoch seconds
        """
        self.extractor = extractor or ClaimExtractor()
        self._sink = sink
        self._clock = clock or time.time
        self._conversations: Dict[str, List[ConversationMessage]] = {}
        self._claims: Dict[str, Claim] = {}
        self._lock = threading.Lock()

    def submit_message(
        self,
        session_id: str,
        role: str,
        content: str,
        timestamp: Optional[float] = None,
    ) -> List[Claim]:
        """
        Record a message and extract claims from it.

        Only assistant messages can carry claims; user and system messages
        are stored for context and yield an empty list.

        Returns:
            Claims extracted from the message
        """
        message = ConversationMessage(
            session_id=session_id,
            role=role,
            content=content,
            timestamp=timestamp if timestamp is not None else self._clock(),
        )
        with self._lock:
            self._conversations.setdefault(session_id, []).append(message)

        if role != "assistant":
            return []

        claims = self.extractor.extract(
            content,
            created_at=message.timestamp,
            session_id=session_id,
        )
        for claim in claims:
            self._register(claim)
        return claims

    def add_claim(
        self,
        text: str,
        domain: Optional[ClaimDomain] = None,
        action: Optional[ClaimAction] = None,
        session_id: Optional[str] = None,
    ) -> Claim:
        """
        Register a claim by hand.

        Unspecified fields come from the strongest extracted candidate, then
        fall back to a generic update claim.
        """
        detected = self.extractor.extract(text, created_at=self._clock())
        best = detected[0] if detected else None

        claim = Claim(
            text=text.strip(),
            domain=domain or (best.domain if best else ClaimDomain.GENERIC),
            action=action or (best.action if best else ClaimAction.UPDATE),
            target=best.target if best else "code",
            confidence=best.confidence if best else 0.8,
            created_at=self._clock(),
            session_id=session_id,
            sources=("manual",),
        )
        self._register(claim)
        return claim

    def _register(self, claim: Claim) -> None:
        with self._lock:
            self._claims[claim.id] = claim

        logger.info(
            f"[CAPTURE] Claim {claim.id}: {claim.action.value} {claim.domain.value} "
            f"({claim.confidence:.0%}) \"{claim.text[:80]}\""
        )

        if self._sink is not None:
            self._sink(claim)

    def get_claim(self, claim_id: str) -> Optional[Claim]:
        with self._lock:
            return self._claims.get(claim_id)

    def get_recent_claims(self, since: Optional[float] = None) -> List[Claim]:
        """Claims created at or after `since` (default: last 5 minutes), newest first."""
        if since is None:
            since = self._clock() - RECENT_ACTIVITY_SECONDS
        with self._lock:
            claims = [c for c in self._claims.values() if c.created_at >= since]
        return sorted(claims, key=lambda c: c.created_at, reverse=True)

    def get_conversation(self, session_id: str) -> List[ConversationMessage]:
        with self._lock:
            return list(self._conversations.get(session_id, []))

    def cleanup(self, older_than: float) -> int:
        """
        Drop claims and messages older than the given timestamp.

        Returns:
            Number of claims removed
        """
        with self._lock:
            stale = [cid for cid, c in self._claims.items() if c.created_at < older_than]
            for claim_id in stale:
                del self._claims[claim_id]

            for session_id in list(self._conversations):
                recent = [m for m in self._conversations[session_id] if m.timestamp >= older_than]
                if recent:
                    self._conversations[session_id] = recent
                else:
                    del self._conversations[session_id]

        if stale:
            logger.debug(f"[CAPTURE] Cleaned up {len(stale)} old claim(s)")
        return len(stale)

    def get_stats(self) -> Dict[str, Any]:
        """Claim totals, per-domain counts and recent activity."""
        with self._lock:
            claims = list(self._claims.values())
            sessions = len(self._conversations)

        by_domain: Dict[str, int] = {}
        for claim in claims:
            by_domain[claim.domain.value] = by_domain.get(claim.domain.value, 0) + 1

        return {
            "total_claims": len(claims),
            "claims_by_domain": by_domain,
            "recent_activity": len(self.get_recent_claims()),
            "sessions": sessions,
        }
