"""
Unified Configuration Manager for SlopWatch.

Provides a single source of truth for the correlation engine, the claim
extractor, the detectors, the file watcher and the scoring layer. Supports:
- Dataclass defaults per section
- JSON file overrides
- Environment-based overrides (SLOPWATCH_*)
- Runtime updates until the engine starts (then frozen)
- Validation that fails fast with ConfigurationError

Usage:
    from slopwatch.core.config_manager import config_manager, get_config

    config = config_manager.initialize("slopwatch.json")
    window = config.correlation.analysis_window_ms

    config_manager.update({"correlation.auto_analyze": False})
    config_manager.freeze()
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Callable, Dict, List, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


# Detector names in their default evaluation order. The generic detector
# accepts every claim, so it must stay last.
DEFAULT_DETECTORS = [
    "styling",
    "scripting",
    "security",
    "testing",
    "accessibility",
    "generic",
]


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigurationError(message)


def _require_unit(value: float, name: str) -> None:
    _require(0.0 <= value <= 1.0, f"{name} must be between 0 and 1, got {value}")


# =============================================================================
# Configuration Dataclasses
# =============================================================================

@dataclass
class CorrelationConfig:
    """
    Configuration for the claim/change correlation engine.

    All durations are in milliseconds.
    """

    analysis_window_ms: int = 30000
    auto_analyze: bool = True
    enabled_detectors: List[str] = field(default_factory=lambda: list(DEFAULT_DETECTORS))

    # Scheduling
    settle_delay_ms: int = 2000
    max_initial_delay_ms: int = 10000
    pre_claim_slack_ms: int = 5000
    expiry_multiplier: float = 2.0
    sweep_interval_ms: int = 60000

    # Bounds
    detector_timeout_ms: int = 1000
    max_buffered_changes: int = 500
    inbound_queue_size: int = 1000

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate configuration."""
        _require(self.analysis_window_ms > 0, "analysis_window_ms must be positive")
        _require(self.settle_delay_ms >= 0, "settle_delay_ms must not be negative")
        _require(self.max_initial_delay_ms > 0, "max_initial_delay_ms must be positive")
        _require(self.pre_claim_slack_ms >= 0, "pre_claim_slack_ms must not be negative")
        _require(self.expiry_multiplier >= 1.0, "expiry_multiplier must be at least 1")
        _require(self.sweep_interval_ms > 0, "sweep_interval_ms must be positive")
        _require(self.detector_timeout_ms > 0, "detector_timeout_ms must be positive")
        _require(self.max_buffered_changes >= 1, "max_buffered_changes must be at least 1")
        _require(self.inbound_queue_size >= 1, "inbound_queue_size must be at least 1")

        if isinstance(self.enabled_detectors, str):
            self.enabled_detectors = [
                name.strip() for name in self.enabled_detectors.split(",") if name.strip()
            ]
        unknown = [name for name in self.enabled_detectors if name not in DEFAULT_DETECTORS]
        _require(not unknown, f"Unknown detectors: {', '.join(unknown)}")
        _require(
            len(set(self.enabled_detectors)) == len(self.enabled_detectors),
            "enabled_detectors must not contain duplicates",
        )

    @property
    def window_seconds(self) -> float:
        return self.analysis_window_ms / 1000.0


@dataclass
class ExtractionConfig:
    """
    Configuration for claim extraction.
    """

    min_confidence: float = 0.3
    proximity_window: int = 20
    agreement_boost: float = 0.1
    confidence_cap: float = 0.95

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate configuration."""
        _require_unit(self.min_confidence, "min_confidence")
        _require_unit(self.agreement_boost, "agreement_boost")
        _require_unit(self.confidence_cap, "confidence_cap")
        _require(self.proximity_window >= 1, "proximity_window must be at least 1")
        _require(
            self.min_confidence <= self.confidence_cap,
            "min_confidence must not exceed confidence_cap",
        )


@dataclass
class DetectionConfig:
    """
    Confidence constants shared by all detectors.

    The verification cutoff and the change/keyword weighting were tuned by
    hand; they are exposed here so they can be re-tuned without code changes.
    """

    verification_cutoff: float = 0.6
    change_weight: float = 0.6
    keyword_weight: float = 0.4
    confidence_cap: float = 0.95
    partial_confidence: float = 0.55
    no_change_confidence: float = 0.9
    placeholder_confidence: float = 0.8

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate configuration."""
        for name in (
            "verification_cutoff",
            "change_weight",
            "keyword_weight",
            "confidence_cap",
            "partial_confidence",
            "no_change_confidence",
            "placeholder_confidence",
        ):
            _require_unit(getattr(self, name), name)
        _require(
            abs(self.change_weight + self.keyword_weight - 1.0) < 1e-6,
            "change_weight and keyword_weight must sum to 1",
        )


@dataclass
class WatcherConfig:
    """
    Configuration for the file-system watcher.
    """

    include_globs: List[str] = field(default_factory=list)
    exclude_globs: List[str] = field(default_factory=list)
    poll_interval_ms: int = 500
    debounce_ms: int = 300
    max_file_bytes: int = 1024 * 1024

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate configuration."""
        _require(self.poll_interval_ms > 0, "poll_interval_ms must be positive")
        _require(self.debounce_ms >= 0, "debounce_ms must not be negative")
        _require(self.max_file_bytes > 0, "max_file_bytes must be positive")
        for name in ("include_globs", "exclude_globs"):
            value = getattr(self, name)
            if isinstance(value, str):
                setattr(self, name, [g.strip() for g in value.split(",") if g.strip()])


@dataclass
class ScoringConfig:
    """
    Configuration for the slop score and verdict retention.
    """

    slop_window_ms: int = 3600000
    retention_hours: float = 24.0
    recent_verdicts_window_ms: int = 300000

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate configuration."""
        _require(self.slop_window_ms > 0, "slop_window_ms must be positive")
        _require(self.retention_hours > 0, "retention_hours must be positive")
        _require(self.recent_verdicts_window_ms > 0, "recent_verdicts_window_ms must be positive")


@dataclass
class ForwardingConfig:
    """
    Configuration for forwarding claims and verdicts to external collaborators.
    """

    jsonl_path: Optional[str] = None
    http_endpoint: Optional[str] = None
    http_timeout_s: float = 5.0
    queue_size: int = 256

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate configuration."""
        _require(self.http_timeout_s > 0, "http_timeout_s must be positive")
        _require(self.queue_size >= 1, "queue_size must be at least 1")


@dataclass
class SlopWatchConfig:
    """
    Complete configuration for SlopWatch.
    """

    correlation: CorrelationConfig = field(default_factory=CorrelationConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    forwarding: ForwardingConfig = field(default_factory=ForwardingConfig)

    # Global settings
    project_path: str = "."
    verbose: bool = False

    _SECTIONS = {
        "correlation": CorrelationConfig,
        "extraction": ExtractionConfig,
        "detection": DetectionConfig,
        "watcher": WatcherConfig,
        "scoring": ScoringConfig,
        "forwarding": ForwardingConfig,
    }

    def validate(self) -> None:
        """Re-validate every section (used after in-place updates)."""
        for name in self._SECTIONS:
            getattr(self, name).validate()
        _require(bool(self.project_path), "project_path must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SlopWatchConfig":
        """Create from dictionary."""
        config = cls()

        for name, section_cls in cls._SECTIONS.items():
            if name in data:
                section_data = data[name] or {}
                known = {f.name for f in fields(section_cls)}
                unknown = set(section_data) - known
                if unknown:
                    raise ConfigurationError(
                        f"Unknown keys in '{name}' section: {', '.join(sorted(unknown))}"
                    )
                setattr(config, name, section_cls(**section_data))

        if "project_path" in data:
            config.project_path = data["project_path"]
        if "verbose" in data:
            config.verbose = bool(data["verbose"])

        return config


# =============================================================================
# Configuration Manager
# =============================================================================

class ConfigManager:
    """
    Centralized configuration manager.

    Provides:
    - Single source of truth for configuration
    - Environment variable overrides
    - Runtime updates until frozen
    - Validation after every change
    - Change callbacks
    """

    ENV_PREFIX = "SLOPWATCH_"

    ENV_MAPPINGS = {
        # Correlation
        "ANALYSIS_WINDOW_MS": "correlation.analysis_window_ms",
        "AUTO_ANALYZE": "correlation.auto_analyze",
        "ENABLED_DETECTORS": "correlation.enabled_detectors",
        "SETTLE_DELAY_MS": "correlation.settle_delay_ms",
        "SWEEP_INTERVAL_MS": "correlation.sweep_interval_ms",
        "DETECTOR_TIMEOUT_MS": "correlation.detector_timeout_ms",

        # Extraction
        "MIN_CLAIM_CONFIDENCE": "extraction.min_confidence",

        # Detection
        "VERIFICATION_CUTOFF": "detection.verification_cutoff",

        # Watcher
        "INCLUDE_GLOBS": "watcher.include_globs",
        "EXCLUDE_GLOBS": "watcher.exclude_globs",
        "POLL_INTERVAL_MS": "watcher.poll_interval_ms",

        # Scoring
        "SLOP_WINDOW_MS": "scoring.slop_window_ms",
        "RETENTION_HOURS": "scoring.retention_hours",

        # Forwarding
        "JSONL_PATH": "forwarding.jsonl_path",
        "HTTP_ENDPOINT": "forwarding.http_endpoint",

        # Global
        "PROJECT_PATH": "project_path",
        "VERBOSE": "verbose",
    }

    # Values that must stay strings even when they look numeric
    _STRING_PATHS = {
        "correlation.enabled_detectors",
        "watcher.include_globs",
        "watcher.exclude_globs",
        "forwarding.jsonl_path",
        "forwarding.http_endpoint",
        "project_path",
    }

    def __init__(self, config: Optional[SlopWatchConfig] = None):
        self._config: SlopWatchConfig = config or SlopWatchConfig()
        self._callbacks: List[Callable[[str, Any, Any], None]] = []
        self._frozen: bool = False
        self._initialized: bool = False

    @property
    def config(self) -> SlopWatchConfig:
        """Get current configuration."""
        return self._config

    @property
    def frozen(self) -> bool:
        return self._frozen

    def initialize(
        self,
        config_path: Optional[str] = None,
        load_env: bool = True,
    ) -> SlopWatchConfig:
        """
        Initialize configuration.

        Args:
            config_path: Optional path to JSON config file
            load_env: Whether to load from environment variables

        Returns:
            Initialized configuration

        Raises:
            ConfigurationError: If any value is invalid
        """
        if config_path:
            self.load_from_file(config_path)

        if load_env:
            self.load_from_environment()

        self._config.validate()
        self._initialized = True
        logger.info("ConfigManager initialized")
        self._log_config_summary()

        return self._config

    def load_from_file(self, path: str) -> None:
        """
        Load configuration from JSON file.

        Args:
            path: Path to configuration file
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning(f"Config file not found: {path}")
            return
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in config file {path}: {e}") from e

        try:
            self._config = SlopWatchConfig.from_dict(data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid config file {path}: {e}") from e
        logger.info(f"Configuration loaded from {path}")

    def load_from_environment(self) -> None:
        """Load configuration from environment variables."""
        for env_suffix, config_path in self.ENV_MAPPINGS.items():
            env_var = f"{self.ENV_PREFIX}{env_suffix}"
            value = os.environ.get(env_var)

            if value is not None:
                if config_path in self._STRING_PATHS:
                    parsed = value
                else:
                    parsed = self._parse_value(value)
                self._set_nested(config_path, parsed)
                logger.debug(f"Config {config_path} set from {env_var}")

        self._config.validate()

    def _parse_value(self, value: str) -> Any:
        """Parse environment variable value to appropriate type."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def _set_nested(self, path: str, value: Any) -> None:
        """
        Set a nested configuration value.

        Args:
            path: Dot-separated path (e.g., "correlation.analysis_window_ms")
            value: Value to set
        """
        parts = path.split(".")
        obj = self._config

        try:
            for part in parts[:-1]:
                obj = getattr(obj, part)
            old_value = getattr(obj, parts[-1])
        except AttributeError as e:
            raise ConfigurationError(f"Unknown configuration key: {path}") from e

        setattr(obj, parts[-1], value)
        self._notify_change(path, old_value, value)

    def _get_nested(self, path: str) -> Any:
        parts = path.split(".")
        obj = self._config

        for part in parts:
            obj = getattr(obj, part)

        return obj

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value by dotted path.

        Args:
            path: Dot-separated path
            default: Default value if not found
        """
        try:
            return self._get_nested(path)
        except AttributeError:
            return default

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value.

        Raises:
            ConfigurationError: If configuration is frozen or the value is invalid
        """
        self.update({path: value})

    def update(self, updates: Dict[str, Any]) -> None:
        """
        Update multiple configuration values.

        Either every value is applied or, when validation fails, none is.

        Raises:
            ConfigurationError: If configuration is frozen or a value is invalid
        """
        if self._frozen:
            raise ConfigurationError("Configuration is frozen once the engine has started")

        applied = []
        try:
            for path, value in updates.items():
                old_value = self.get(path)
                self._set_nested(path, value)
                applied.append((path, old_value))
            self._config.validate()
        except ConfigurationError:
            for path, old_value in reversed(applied):
                self._set_nested(path, old_value)
            raise

    def freeze(self) -> None:
        """Freeze configuration to prevent further changes."""
        self._frozen = True
        logger.debug("Configuration frozen")

    def unfreeze(self) -> None:
        """Unfreeze configuration to allow changes."""
        self._frozen = False
        logger.debug("Configuration unfrozen")

    def add_change_callback(self, callback: Callable[[str, Any, Any], None]) -> None:
        """
        Add a callback for configuration changes.

        Args:
            callback: Function(path, old_value, new_value)
        """
        self._callbacks.append(callback)

    def _notify_change(self, path: str, old_value: Any, new_value: Any) -> None:
        for callback in self._callbacks:
            try:
                callback(path, old_value, new_value)
            except Exception as e:
                logger.error(f"Config change callback failed: {e}")

    def _log_config_summary(self) -> None:
        correlation = self._config.correlation
        logger.info(f"Project path: {self._config.project_path}")
        logger.info(
            f"Correlation: window={correlation.analysis_window_ms}ms, "
            f"auto_analyze={correlation.auto_analyze}, "
            f"detectors={','.join(correlation.enabled_detectors)}"
        )
        logger.debug(
            f"Detection: cutoff={self._config.detection.verification_cutoff}, "
            f"weights={self._config.detection.change_weight}/{self._config.detection.keyword_weight}"
        )

    def save_to_file(self, path: str) -> None:
        """
        Save current configuration to JSON file.

        Args:
            path: Output file path
        """
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self._config.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")


# =============================================================================
# Global Instance and Convenience Functions
# =============================================================================

config_manager = ConfigManager()


def get_config() -> SlopWatchConfig:
    """Get the current configuration."""
    return config_manager.config


def initialize_config(
    config_path: Optional[str] = None,
    load_env: bool = True,
) -> SlopWatchConfig:
    """Initialize the global configuration."""
    return config_manager.initialize(config_path, load_env)
