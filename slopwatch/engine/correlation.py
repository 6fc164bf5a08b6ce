"""
Correlation Engine: the claim/change state machine.

Holds pending claims and a bounded buffer of recent file changes, arms and
cancels evaluation timers, dispatches (claim, changes) pairs to detectors
and stores the resulting verdicts.

Claim lifecycle:
    pending -> scheduled -> evaluating -> resolved
    pending/scheduled -> expired

Timing:
    - on arrival: evaluate after min(window / 3, max_initial_delay)
    - on a related change: re-arm to settle_delay from now, never past
      created_at + window
    - every sweep_interval: expire claims older than expiry_multiplier x
      window, purge verdicts past retention

The engine is synchronous and single-threaded. Nothing here sleeps or
starts timers on its own: the caller feeds events in and calls run_due()
when next_deadline() has passed. EngineRunner does that on a dedicated
thread; tests do it with a ManualClock.

Usage:
    engine = CorrelationEngine(CorrelationConfig(), clock=ManualClock())
    engine.submit_claim(claim)
    engine.handle_change(change)
    clock.advance(2.0)
    verdicts = engine.run_due()
"""

import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional, Tuple

from ..claims.models import Claim, ClaimState
from ..core.config_manager import CorrelationConfig, DetectionConfig, ScoringConfig
from ..detectors.registry import DetectorRegistry
from ..forwarding import Forwarder, NullForwarder
from ..scoring.calculator import ScoreCalculator
from ..scoring.store import VerdictStore
from ..scoring.verdicts import Expiration, Verdict, VerdictStatus
from ..watching.events import FileChangeEvent
from .clock import Clock, SystemClock
from .relatedness import in_evaluation_range, is_related
from .timers import TimerHandle, TimerQueue

logger = logging.getLogger(__name__)

SWEEP_KEY = "__sweep__"

VerdictListener = Callable[[Verdict], None]
CleanupHook = Callable[[float], object]


@dataclass
class PendingClaim:
    """Engine-owned bookkeeping for a claim that has not reached a terminal state."""
    claim: Claim
    state: ClaimState = ClaimState.PENDING
    timer: Optional[TimerHandle] = None


class CorrelationEngine:
    """
    Correlates claims with file changes and resolves each claim exactly once.
    """

    def __init__(
        self,
        config: Optional[CorrelationConfig] = None,
        registry: Optional[DetectorRegistry] = None,
        store: Optional[VerdictStore] = None,
        clock: Optional[Clock] = None,
        forwarder: Optional[Forwarder] = None,
        scoring: Optional[ScoringConfig] = None,
        detection: Optional[DetectionConfig] = None,
    ):
        self.config = config or CorrelationConfig()
        self.scoring = scoring or ScoringConfig()
        self.registry = registry or DetectorRegistry.from_names(
            self.config.enabled_detectors, detection
        )
        self.store = store or VerdictStore()
        self.clock = clock or SystemClock()
        self.forwarder = forwarder or NullForwarder()
        self.calculator = ScoreCalculator(self.store, self.scoring, clock=self.clock)

        self._pending: Dict[str, PendingClaim] = {}
        # claim_id -> (terminal or evaluating state, created_at)
        self._finished: Dict[str, Tuple[ClaimState, float]] = {}
        self._buffer: Deque[FileChangeEvent] = deque(maxlen=self.config.max_buffered_changes)
        self._timers = TimerQueue()
        self._total_claims = 0

        self._listeners: List[VerdictListener] = []
        self._cleanup_hooks: List[CleanupHook] = []
        self._executor: Optional[ThreadPoolExecutor] = None
        self._sweep_timer: Optional[TimerHandle] = None
        self.open()

        logger.info(
            f"[ENGINE] Initialized: window={self.config.analysis_window_ms}ms, "
            f"auto_analyze={self.config.auto_analyze}, detectors={','.join(self.registry.names)}"
        )

    # =========================================================================
    # Wiring
    # =========================================================================

    def add_verdict_listener(self, listener: VerdictListener) -> None:
        self._listeners.append(listener)

    def add_cleanup_hook(self, hook: CleanupHook) -> None:
        """Register a callable run by the sweep with the retention cutoff timestamp."""
        self._cleanup_hooks.append(hook)

    @property
    def window_s(self) -> float:
        return self.config.window_seconds

    @property
    def initial_delay_s(self) -> float:
        return min(self.window_s / 3.0, self.config.max_initial_delay_ms / 1000.0)

    # =========================================================================
    # Inbound events
    # =========================================================================

    def submit_claim(self, claim: Claim) -> bool:
        """
        Register a claim.

        Returns:
            False if the claim id is already known
        """
        if claim.id in self._pending or claim.id in self._finished:
            logger.debug(f"[ENGINE] Duplicate claim {claim.id} ignored")
            return False

        entry = PendingClaim(claim=claim)
        self._pending[claim.id] = entry
        self._total_claims += 1

        if self.config.auto_analyze:
            self._arm(entry, self.clock.now() + self.initial_delay_s)

        logger.info(
            f"[ENGINE] Claim {claim.id} registered ({claim.domain.value}/{claim.action.value}): "
            f"\"{claim.text[:80]}\""
        )
        self._forward("send_claim", claim)
        return True

    def handle_change(self, change: FileChangeEvent) -> int:
        """
        Buffer a file change and re-arm timers of related pending claims.

        Returns:
            Number of claims whose evaluation was rescheduled
        """
        now = self.clock.now()
        self._buffer.append(change)
        self._prune_buffer(now)

        if not self.config.auto_analyze:
            return 0

        settle = self.config.settle_delay_ms / 1000.0
        rescheduled = 0
        for entry in self._pending.values():
            if not is_related(entry.claim, change):
                continue
            latest = max(now, entry.claim.created_at + self.window_s)
            self._arm(entry, min(now + settle, latest))
            rescheduled += 1

        if rescheduled:
            logger.debug(
                f"[ENGINE] Change to {change.path} rescheduled {rescheduled} claim(s)"
            )
        return rescheduled

    # =========================================================================
    # Timers
    # =========================================================================

    def _arm(self, entry: PendingClaim, deadline: float) -> None:
        self._timers.cancel(entry.timer)
        entry.timer = self._timers.schedule(deadline, entry.claim.id)
        entry.state = ClaimState.SCHEDULED
        logger.debug(
            f"[ENGINE] Claim {entry.claim.id} scheduled in "
            f"{max(0.0, deadline - self.clock.now()):.2f}s"
        )

    def next_deadline(self) -> Optional[float]:
        return self._timers.next_deadline()

    def run_due(self) -> List[Verdict]:
        """
        Fire every timer whose deadline has passed.

        Returns:
            Verdicts produced by evaluation timers
        """
        verdicts = []
        for handle in self._timers.pop_due(self.clock.now()):
            if handle.kind == "sweep":
                self.sweep()
                continue
            entry = self._pending.get(handle.key)
            # A re-armed claim carries a newer handle; the old one is stale
            if entry is None or entry.timer is not handle:
                continue
            verdict = self._evaluate_isolated(handle.key)
            if verdict is not None:
                verdicts.append(verdict)
        return verdicts

    def open(self) -> None:
        """Arm the periodic sweep and any pending claim without a timer. Safe to call after close()."""
        now = self.clock.now()
        if self._sweep_timer is None or not self._sweep_timer.active:
            self._sweep_timer = self._timers.schedule(
                now + self.config.sweep_interval_ms / 1000.0, SWEEP_KEY, kind="sweep"
            )
        if not self.config.auto_analyze:
            return
        # Claims whose timers were cleared by close() get evaluated again
        for entry in self._pending.values():
            if entry.timer is None or not entry.timer.active:
                self._arm(entry, max(now, entry.claim.created_at + self.initial_delay_s))

    # =========================================================================
    # Evaluation
    # =========================================================================

    def analyze_claim(self, claim_id: str) -> Optional[Verdict]:
        """Evaluate one pending claim now, regardless of its timer."""
        return self._evaluate(claim_id)

    def analyze_all_pending(self) -> List[Verdict]:
        """Evaluate every pending or scheduled claim now."""
        verdicts = []
        for claim_id in list(self._pending):
            verdict = self._evaluate_isolated(claim_id)
            if verdict is not None:
                verdicts.append(verdict)
        return verdicts

    def _evaluate_isolated(self, claim_id: str) -> Optional[Verdict]:
        """_evaluate() for batch callers: one failing claim must not stop the rest."""
        try:
            return self._evaluate(claim_id)
        except Exception as e:
            logger.error(f"[ENGINE] Evaluation of claim {claim_id} failed: {e}")
            record = self._finished.get(claim_id)
            if record is None or record[0] != ClaimState.EVALUATING:
                return None
            verdict = Verdict(
                claim_id=claim_id,
                status=VerdictStatus.UNKNOWN,
                confidence=0.0,
                reason=f"evaluation failed: {e}",
                detector_name="none",
                resolved_at=self.clock.now(),
            )
            self.store.add(verdict)
            self._finished[claim_id] = (ClaimState.RESOLVED, record[1])
            self._notify(verdict)
            return verdict

    def _evaluate(self, claim_id: str) -> Optional[Verdict]:
        # Removing the entry first means no other path can dispatch it again
        entry = self._pending.pop(claim_id, None)
        if entry is None:
            return None
        self._timers.cancel(entry.timer)

        claim = entry.claim
        self._finished[claim_id] = (ClaimState.EVALUATING, claim.created_at)

        try:
            changes = self.correlated_changes(claim)
        except Exception as e:
            logger.warning(f"[ENGINE] Correlating changes for claim {claim_id} failed: {e}")
            changes = []
        verdict = self._dispatch(claim, changes)

        self.store.add(verdict)
        self._finished[claim_id] = (ClaimState.RESOLVED, claim.created_at)

        logger.info(
            f"[ENGINE] Claim {claim_id} -> {verdict.status.value} "
            f"({verdict.confidence:.0%}, {verdict.detector_name}, {len(changes)} change(s)): {verdict.reason}"
        )
        self._forward("send_verdict", verdict)
        self._notify(verdict)
        return verdict

    def correlated_changes(self, claim: Claim) -> List[FileChangeEvent]:
        """Buffered changes inside the claim's evaluation range that relate to it."""
        slack = self.config.pre_claim_slack_ms / 1000.0
        return [
            change for change in self._buffer
            if in_evaluation_range(claim, change, self.window_s, slack)
            and is_related(claim, change)
        ]

    def _dispatch(self, claim: Claim, changes: List[FileChangeEvent]) -> Verdict:
        """Run the registry with a timeout; timeouts and errors become unknown verdicts."""
        timeout_s = self.config.detector_timeout_ms / 1000.0
        detector_name = "none"
        future = None
        try:
            detector = self.registry.select(claim)
            detector_name = detector.name if detector else "none"
            future = self._pool().submit(self.registry.analyze, claim, changes)
            verdict = future.result(timeout=timeout_s)
        except FuturesTimeoutError:
            if future is not None:
                future.cancel()
            logger.warning(
                f"[ENGINE] Detector {detector_name} timed out after "
                f"{self.config.detector_timeout_ms}ms on claim {claim.id}"
            )
            verdict = Verdict(
                claim_id=claim.id,
                status=VerdictStatus.UNKNOWN,
                confidence=0.0,
                reason=f"detector timed out after {self.config.detector_timeout_ms}ms",
                detector_name=detector_name,
            )
        except Exception as e:
            logger.warning(f"[ENGINE] Detector {detector_name} failed on claim {claim.id}: {e}")
            verdict = Verdict(
                claim_id=claim.id,
                status=VerdictStatus.UNKNOWN,
                confidence=0.0,
                reason=f"detector failed: {e}",
                detector_name=detector_name,
            )

        # Stamp with the engine clock so retention and recency use one time base
        return Verdict(
            claim_id=verdict.claim_id,
            status=verdict.status,
            confidence=verdict.confidence,
            reason=verdict.reason,
            evidence=verdict.evidence,
            detector_name=verdict.detector_name,
            resolved_at=self.clock.now(),
            id=verdict.id,
        )

    # =========================================================================
    # Sweep
    # =========================================================================

    def sweep(self) -> List[str]:
        """
        Expire stale claims and purge records past retention.

        Re-arms the periodic sweep timer.

        Returns:
            Ids of claims expired by this sweep
        """
        now = self.clock.now()
        self._timers.cancel(self._sweep_timer)
        self._sweep_timer = self._timers.schedule(
            now + self.config.sweep_interval_ms / 1000.0, SWEEP_KEY, kind="sweep"
        )

        cutoff = now - self.config.expiry_multiplier * self.window_s
        stale = [cid for cid, entry in self._pending.items() if entry.claim.created_at < cutoff]
        for claim_id in stale:
            entry = self._pending.pop(claim_id)
            self._timers.cancel(entry.timer)
            self._finished[claim_id] = (ClaimState.EXPIRED, entry.claim.created_at)
            self.store.record_expiration(Expiration(claim_id=claim_id, expired_at=now))
            logger.info(f"[ENGINE] Claim {claim_id} expired: stale claim, no correlated activity")

        self._prune_buffer(now)

        retention_cutoff = now - self.scoring.retention_hours * 3600.0
        self.store.purge_older_than(retention_cutoff)
        self._finished = {
            cid: record for cid, record in self._finished.items()
            if record[1] >= retention_cutoff
        }
        for hook in self._cleanup_hooks:
            try:
                hook(retention_cutoff)
            except Exception as e:
                logger.warning(f"[ENGINE] Cleanup hook failed: {e}")

        if stale:
            logger.debug(f"[ENGINE] Sweep expired {len(stale)} claim(s)")
        return stale

    def _prune_buffer(self, now: float) -> None:
        # Keep the pre-claim slack so claims evaluated at the end of their
        # window still see changes made just before they were created
        horizon = now - self.window_s - self.config.pre_claim_slack_ms / 1000.0
        while self._buffer and self._buffer[0].occurred_at < horizon:
            self._buffer.popleft()

    # =========================================================================
    # Queries
    # =========================================================================

    def get_claim_state(self, claim_id: str) -> Optional[ClaimState]:
        entry = self._pending.get(claim_id)
        if entry is not None:
            return entry.state
        record = self._finished.get(claim_id)
        return record[0] if record else None

    def get_pending_claims(self) -> List[Claim]:
        return [entry.claim for entry in list(self._pending.values())]

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def buffered_changes(self) -> List[FileChangeEvent]:
        return list(self._buffer)

    def get_verdict(self, verdict_id: str) -> Optional[Verdict]:
        return self.store.get(verdict_id)

    def get_verdict_for_claim(self, claim_id: str) -> Optional[Verdict]:
        return self.store.for_claim(claim_id)

    def get_recent_verdicts(self, since: Optional[float] = None) -> List[Verdict]:
        """Verdicts since a timestamp (default: recent verdicts window), newest first."""
        if since is None:
            since = self.clock.now() - self.scoring.recent_verdicts_window_ms / 1000.0
        return self.store.since(since)

    def get_stats(self):
        return self.calculator.get_stats(
            total_claims=self._total_claims,
            pending_claims=len(self._pending),
            recent_file_changes=len(self._buffer),
        )

    # =========================================================================
    # Output
    # =========================================================================

    def _forward(self, method: str, payload) -> None:
        try:
            getattr(self.forwarder, method)(payload)
        except Exception as e:
            logger.warning(f"[ENGINE] Forwarder {method} failed: {e}")

    def _notify(self, verdict: Verdict) -> None:
        for listener in self._listeners:
            try:
                listener(verdict)
            except Exception as e:
                logger.warning(f"[ENGINE] Verdict listener failed: {e}")

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="slopwatch-detector")
        return self._executor

    def close(self) -> None:
        """
        Cancel all timers and release the detector pool.

        Claims and verdicts are kept; open() re-arms the sweep and the pool
        is recreated on the next evaluation.
        """
        self._timers.clear()
        self._sweep_timer = None
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
