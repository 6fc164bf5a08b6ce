"""
In-memory verdict store.

Holds one terminal record per claim: either a Verdict or an Expiration.
Written by the engine's single execution context, read concurrently by
API handlers and the CLI, hence the lock.
"""

import logging
import threading
from typing import Dict, List, Optional

from .verdicts import Expiration, Verdict

logger = logging.getLogger(__name__)


class VerdictStore:
    """
    Thread-safe verdict storage with retention purging.

    Usage:
        store = VerdictStore()
        store.add(verdict)
        recent = store.since(time.time() - 300)
    """

    def __init__(self):
        self._verdicts: Dict[str, Verdict] = {}
        self._by_claim: Dict[str, str] = {}
        self._expirations: Dict[str, Expiration] = {}
        self._lock = threading.Lock()

    def add(self, verdict: Verdict) -> bool:
        """
        Store a verdict.

        Returns:
            False if the claim already has a terminal record (nothing stored)
        """
        with self._lock:
            if verdict.claim_id in self._by_claim or verdict.claim_id in self._expirations:
                logger.warning(f"Claim {verdict.claim_id} already resolved; ignoring verdict {verdict.id}")
                return False
            self._verdicts[verdict.id] = verdict
            self._by_claim[verdict.claim_id] = verdict.id
            return True

    def record_expiration(self, expiration: Expiration) -> bool:
        with self._lock:
            if expiration.claim_id in self._by_claim or expiration.claim_id in self._expirations:
                return False
            self._expirations[expiration.claim_id] = expiration
            return True

    def get(self, verdict_id: str) -> Optional[Verdict]:
        with self._lock:
            return self._verdicts.get(verdict_id)

    def for_claim(self, claim_id: str) -> Optional[Verdict]:
        with self._lock:
            verdict_id = self._by_claim.get(claim_id)
            return self._verdicts.get(verdict_id) if verdict_id else None

    def expiration_for(self, claim_id: str) -> Optional[Expiration]:
        with self._lock:
            return self._expirations.get(claim_id)

    def since(self, timestamp: float) -> List[Verdict]:
        """Verdicts resolved at or after timestamp, newest first."""
        with self._lock:
            verdicts = [v for v in self._verdicts.values() if v.resolved_at >= timestamp]
        return sorted(verdicts, key=lambda v: v.resolved_at, reverse=True)

    def all(self) -> List[Verdict]:
        with self._lock:
            return list(self._verdicts.values())

    def expirations(self) -> List[Expiration]:
        with self._lock:
            return list(self._expirations.values())

    def purge_older_than(self, timestamp: float) -> int:
        """
        Drop verdicts and expirations older than timestamp.

        Returns:
            Number of records removed
        """
        with self._lock:
            old = [v for v in self._verdicts.values() if v.resolved_at < timestamp]
            for verdict in old:
                del self._verdicts[verdict.id]
                self._by_claim.pop(verdict.claim_id, None)

            old_expired = [c for c, e in self._expirations.items() if e.expired_at < timestamp]
            for claim_id in old_expired:
                del self._expirations[claim_id]

        removed = len(old) + len(old_expired)
        if removed:
            logger.debug(f"Purged {removed} record(s) past retention")
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._verdicts)
