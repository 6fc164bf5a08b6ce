"""
Engine Runner: the engine's single execution context.

Producers (the watcher thread, API handlers, the conversation capture)
only enqueue immutable messages on a bounded queue. One daemon thread
consumes the queue in arrival order, applies each message to the
CorrelationEngine and fires due timers between messages. A full queue
blocks the producer.

Usage:
    runner = EngineRunner(engine)
    runner.start()
    runner.submit_claim(claim)
    runner.submit_change(change)
    runner.stop()
"""

import logging
import queue
import threading
from typing import Optional

from ..claims.models import Claim
from ..core.errors import EngineNotRunningError
from ..watching.events import FileChangeEvent
from .correlation import CorrelationEngine
from .messages import AnalyzeAll, ChangeObserved, ClaimArrived, EngineMessage, Shutdown

logger = logging.getLogger(__name__)

# Upper bound on how long the loop blocks without checking timers
MAX_IDLE_WAIT_S = 0.5


class EngineRunner:
    """Owns the thread that drives a CorrelationEngine."""

    def __init__(self, engine: CorrelationEngine, queue_size: Optional[int] = None):
        self.engine = engine
        self._queue: "queue.Queue[EngineMessage]" = queue.Queue(
            maxsize=queue_size or engine.config.inbound_queue_size
        )
        self._thread: Optional[threading.Thread] = None
        self._running = threading.Event()
        self.processed = 0

    @property
    def running(self) -> bool:
        return self._running.is_set()

    def start(self) -> None:
        if self.running:
            return
        self._running.set()
        self._thread = threading.Thread(target=self._run, name="slopwatch-engine", daemon=True)
        self._thread.start()
        logger.info("[ENGINE] Runner started")

    def stop(self, timeout: float = 5.0) -> None:
        """
        Drain queued messages, resolve claims still pending and stop the loop.

        The engine stays usable; start() may be called again.
        """
        if not self.running:
            return
        self._running.clear()
        self._queue.put(Shutdown(), timeout=timeout)
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info(f"[ENGINE] Runner stopped after {self.processed} message(s)")

    # =========================================================================
    # Producers
    # =========================================================================

    def _put(self, message: EngineMessage, timeout: Optional[float]) -> None:
        if not self.running:
            raise EngineNotRunningError(f"Engine is not running; cannot accept {type(message).__name__}")
        self._queue.put(message, timeout=timeout)

    def submit_claim(self, claim: Claim, timeout: Optional[float] = None) -> None:
        self._put(ClaimArrived(claim), timeout)

    def submit_change(self, change: FileChangeEvent, timeout: Optional[float] = None) -> None:
        self._put(ChangeObserved(change), timeout)

    def request_analysis(self) -> None:
        self._put(AnalyzeAll(), None)

    # =========================================================================
    # Consumer
    # =========================================================================

    def _next_wait(self) -> float:
        deadline = self.engine.next_deadline()
        if deadline is None:
            return MAX_IDLE_WAIT_S
        return min(MAX_IDLE_WAIT_S, max(0.0, deadline - self.engine.clock.now()))

    def _run(self) -> None:
        while True:
            try:
                message = self._queue.get(timeout=self._next_wait())
            except queue.Empty:
                message = None

            if isinstance(message, Shutdown):
                self._resolve_pending()
                break

            try:
                if message is not None:
                    self._apply(message)
                    self.processed += 1
                self.engine.run_due()
            except Exception as e:
                # The loop outlives any single bad message
                logger.warning(f"[ENGINE] Failed to process {type(message).__name__}: {e}")

    def _resolve_pending(self) -> None:
        pending = self.engine.pending_count
        if pending:
            logger.info(f"[ENGINE] Resolving {pending} pending claim(s) before shutdown")
        try:
            self.engine.analyze_all_pending()
        except Exception as e:
            logger.warning(f"[ENGINE] Resolving pending claims failed: {e}")

    def _apply(self, message: EngineMessage) -> None:
        if isinstance(message, ClaimArrived):
            self.engine.submit_claim(message.claim)
        elif isinstance(message, ChangeObserved):
            self.engine.handle_change(message.change)
        elif isinstance(message, AnalyzeAll):
            self.engine.analyze_all_pending()
        else:
            logger.warning(f"[ENGINE] Unknown message type: {type(message).__name__}")
