"""
SlopWatch - Claim/Evidence Correlation Engine.

Watches what an AI coding assistant says it did and what actually changed
on disk, and classifies every claim as verified, lie, partial or unknown.

Key Components:
- ClaimExtractor: Turns assistant text into structured claims
- FileChangeWatcher: Emits debounced file changes with line diffs
- DetectorRegistry: Domain detectors (styling, scripting, security, ...)
- CorrelationEngine: Times and matches claims against changes
- ScoreCalculator: Rolling slop score and statistics

Quick Start:
    from slopwatch import SlopWatchService

    service = SlopWatchService()
    service.start("./my-project")
    service.submit_message("session-1", "assistant", "I added responsive media queries")
"""

__version__ = "1.0.0"

from .claims import (
    Claim,
    ClaimAction,
    ClaimDomain,
    ClaimExtractor,
    ClaimState,
    ConversationCapture,
)
from .core import (
    ConfigurationError,
    SlopWatchConfig,
    SlopWatchError,
    config_manager,
    get_config,
)
from .detectors import Detector, DetectorRegistry, Signature
from .engine import CorrelationEngine, EngineRunner, ManualClock
from .scoring import ScoreCalculator, Verdict, VerdictStatus, VerdictStore
from .service import SlopWatchService, get_service
from .watching import ChangeKind, FileChangeEvent, FileChangeWatcher

__all__ = [
    "__version__",
    "Claim",
    "ClaimAction",
    "ClaimDomain",
    "ClaimExtractor",
    "ClaimState",
    "ConversationCapture",
    "ConfigurationError",
    "SlopWatchConfig",
    "SlopWatchError",
    "config_manager",
    "get_config",
    "Detector",
    "DetectorRegistry",
    "Signature",
    "CorrelationEngine",
    "EngineRunner",
    "ManualClock",
    "ScoreCalculator",
    "Verdict",
    "VerdictStatus",
    "VerdictStore",
    "SlopWatchService",
    "get_service",
    "ChangeKind",
    "FileChangeEvent",
    "FileChangeWatcher",
]
