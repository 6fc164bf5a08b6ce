"""
Core configuration and error taxonomy for SlopWatch.
"""

from .config_manager import (
    DEFAULT_DETECTORS,
    ConfigManager,
    CorrelationConfig,
    DetectionConfig,
    ExtractionConfig,
    ForwardingConfig,
    ScoringConfig,
    SlopWatchConfig,
    WatcherConfig,
    config_manager,
    get_config,
    initialize_config,
)
from .errors import (
    ConfigurationError,
    DetectorFailure,
    EngineNotRunningError,
    SlopWatchError,
    WatcherIOError,
)

__all__ = [
    "DEFAULT_DETECTORS",
    "ConfigManager",
    "CorrelationConfig",
    "DetectionConfig",
    "ExtractionConfig",
    "ForwardingConfig",
    "ScoringConfig",
    "SlopWatchConfig",
    "WatcherConfig",
    "config_manager",
    "get_config",
    "initialize_config",
    "ConfigurationError",
    "DetectorFailure",
    "EngineNotRunningError",
    "SlopWatchError",
    "WatcherIOError",
]
