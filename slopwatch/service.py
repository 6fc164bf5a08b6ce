"""
SlopWatch Service: composition root.

Wires the claim extractor, conversation capture, file watcher, detector
registry, correlation engine, runner and forwarder into one object that
the CLI and the API talk to.

Usage:
    from slopwatch.service import SlopWatchService

    service = SlopWatchService()
    service.start("./my-project")
    service.submit_message("session-1", "assistant", "✅ Added dark mode")
    ...
    print(service.get_stats())
    service.stop()
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from .claims.capture import ConversationCapture
from .claims.extractor import ClaimExtractor
from .claims.models import Claim, ClaimAction, ClaimDomain
from .core.config_manager import SlopWatchConfig, config_manager
from .detectors.registry import DetectorRegistry
from .engine.clock import Clock, SystemClock
from .engine.correlation import CorrelationEngine
from .engine.runner import EngineRunner
from .forwarding import Forwarder, build_forwarder
from .scoring.verdicts import Verdict
from .watching.events import FileChangeEvent
from .watching.watcher import FileChangeWatcher

logger = logging.getLogger(__name__)


class SlopWatchService:
    """
    Facade over the whole pipeline.

    While the runner is running, every engine mutation goes through its
    queue. Before start() (one-shot CLI use, tests) calls go straight to
    the engine on the caller's thread.
    """

    def __init__(
        self,
        config: Optional[SlopWatchConfig] = None,
        clock: Optional[Clock] = None,
        forwarder: Optional[Forwarder] = None,
    ):
        self._uses_global_config = config is None
        self.config = config or config_manager.config
        self.clock = clock or SystemClock()
        self.forwarder = forwarder or build_forwarder(self.config.forwarding)

        self.registry = DetectorRegistry.from_names(
            self.config.correlation.enabled_detectors, self.config.detection
        )
        self.engine = CorrelationEngine(
            self.config.correlation,
            registry=self.registry,
            clock=self.clock,
            forwarder=self.forwarder,
            scoring=self.config.scoring,
        )
        self.runner = EngineRunner(self.engine)

        self.extractor = ClaimExtractor(self.config.extraction)
        self.capture = ConversationCapture(self.extractor, sink=self._route_claim, clock=self.clock)
        self.watcher = FileChangeWatcher(self.config.watcher, clock=self.clock)

        self.engine.add_cleanup_hook(self.capture.cleanup)

    @property
    def running(self) -> bool:
        return self.runner.running

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self, project_path: Optional[str] = None, watch: bool = True) -> None:
        """
        Start the engine runner and, optionally, the file watcher.

        Configuration is frozen from here on.
        """
        if self._uses_global_config:
            config_manager.freeze()

        self.forwarder.open()
        self.engine.open()
        self.runner.start()
        if watch:
            root = project_path or self.config.project_path
            self.watcher.start(root, sink=self._route_change)

    def stop(self) -> None:
        self.watcher.stop()
        self.runner.stop()
        self.engine.close()
        self.forwarder.close()
        if self._uses_global_config:
            config_manager.unfreeze()

    # =========================================================================
    # Inbound
    # =========================================================================

    def _route_claim(self, claim: Claim) -> None:
        if self.runner.running:
            self.runner.submit_claim(claim)
        else:
            self.engine.submit_claim(claim)

    def _route_change(self, change: FileChangeEvent) -> None:
        if self.runner.running:
            self.runner.submit_change(change)
        else:
            self.engine.handle_change(change)

    def submit_message(
        self,
        session_id: str,
        role: str,
        content: str,
        timestamp: Optional[float] = None,
    ) -> List[Claim]:
        """Record a conversation message; extracted claims go to the engine."""
        return self.capture.submit_message(session_id, role, content, timestamp)

    def add_claim(
        self,
        text: str,
        domain: Optional[ClaimDomain] = None,
        action: Optional[ClaimAction] = None,
    ) -> Claim:
        return self.capture.add_claim(text, domain=domain, action=action)

    def record_change(self, change: FileChangeEvent) -> None:
        """Feed a change that did not come from the watcher."""
        self._route_change(change)

    def analyze_pending(self) -> Optional[List[Verdict]]:
        """
        Evaluate all pending claims now.

        Returns the verdicts when run synchronously, None when queued.
        """
        if self.runner.running:
            self.runner.request_analysis()
            return None
        return self.engine.analyze_all_pending()

    # =========================================================================
    # Queries
    # =========================================================================

    def add_verdict_listener(self, listener: Callable[[Verdict], None]) -> None:
        self.engine.add_verdict_listener(listener)

    def get_recent_verdicts(self, since: Optional[float] = None) -> List[Verdict]:
        return self.engine.get_recent_verdicts(since)

    def get_verdict(self, verdict_id: str) -> Optional[Verdict]:
        return self.engine.get_verdict(verdict_id)

    def get_claim(self, claim_id: str) -> Optional[Claim]:
        return self.capture.get_claim(claim_id)

    def get_stats(self) -> Dict[str, Any]:
        return self.engine.get_stats()


# =============================================================================
# Global Instance
# =============================================================================

_service: Optional[SlopWatchService] = None
_service_lock = threading.Lock()


def get_service() -> SlopWatchService:
    """Get (or lazily create) the process-wide service."""
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = SlopWatchService()
    return _service


def set_service(service: Optional[SlopWatchService]) -> None:
    """Replace the process-wide service (used by the CLI and tests)."""
    global _service
    with _service_lock:
        _service = service
