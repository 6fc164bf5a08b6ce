"""
Tests for the configuration manager and section validation.
"""

import json

import pytest


class TestConfigSections:
    """Tests for per-section validation."""

    def test_defaults(self):
        from slopwatch.core.config_manager import DEFAULT_DETECTORS, SlopWatchConfig

        config = SlopWatchConfig()

        assert config.correlation.analysis_window_ms == 30000
        assert config.correlation.auto_analyze is True
        assert config.correlation.enabled_detectors == DEFAULT_DETECTORS
        assert config.detection.verification_cutoff == 0.6
        assert config.scoring.retention_hours == 24.0

    @pytest.mark.parametrize("kwargs", [
        {"analysis_window_ms": 0},
        {"analysis_window_ms": -5},
        {"enabled_detectors": ["styling", "astrology"]},
        {"enabled_detectors": ["styling", "styling"]},
        {"expiry_multiplier": 0.5},
    ])
    def test_invalid_correlation_config(self, kwargs):
        from slopwatch.core.config_manager import CorrelationConfig
        from slopwatch.core.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            CorrelationConfig(**kwargs)

    def test_detection_weights_must_sum_to_one(self):
        from slopwatch.core.config_manager import DetectionConfig
        from slopwatch.core.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            DetectionConfig(change_weight=0.7, keyword_weight=0.4)

    def test_threshold_out_of_range(self):
        from slopwatch.core.config_manager import DetectionConfig
        from slopwatch.core.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            DetectionConfig(verification_cutoff=1.5)

    def test_detector_list_from_string(self):
        from slopwatch.core.config_manager import CorrelationConfig

        config = CorrelationConfig(enabled_detectors="styling, generic")

        assert config.enabled_detectors == ["styling", "generic"]

    def test_configuration_error_is_value_error(self):
        from slopwatch.core.errors import ConfigurationError

        assert issubclass(ConfigurationError, ValueError)


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_load_from_file(self, temp_dir):
        from slopwatch.core.config_manager import ConfigManager

        path = temp_dir / "slopwatch.json"
        path.write_text(json.dumps({
            "correlation": {"analysis_window_ms": 5000, "auto_analyze": False},
            "project_path": "./web",
        }))

        config = ConfigManager().initialize(str(path), load_env=False)

        assert config.correlation.analysis_window_ms == 5000
        assert config.correlation.auto_analyze is False
        assert config.project_path == "./web"

    def test_unknown_keys_are_rejected(self, temp_dir):
        from slopwatch.core.config_manager import ConfigManager
        from slopwatch.core.errors import ConfigurationError

        path = temp_dir / "slopwatch.json"
        path.write_text(json.dumps({"correlation": {"window": 5}}))

        with pytest.raises(ConfigurationError):
            ConfigManager().initialize(str(path), load_env=False)

    def test_invalid_json(self, temp_dir):
        from slopwatch.core.config_manager import ConfigManager
        from slopwatch.core.errors import ConfigurationError

        path = temp_dir / "slopwatch.json"
        path.write_text("{not json")

        with pytest.raises(ConfigurationError):
            ConfigManager().load_from_file(str(path))

    def test_environment_overrides(self, monkeypatch):
        from slopwatch.core.config_manager import ConfigManager

        monkeypatch.setenv("SLOPWATCH_ANALYSIS_WINDOW_MS", "12000")
        monkeypatch.setenv("SLOPWATCH_AUTO_ANALYZE", "false")
        monkeypatch.setenv("SLOPWATCH_ENABLED_DETECTORS", "scripting,generic")

        config = ConfigManager().initialize()

        assert config.correlation.analysis_window_ms == 12000
        assert config.correlation.auto_analyze is False
        assert config.correlation.enabled_detectors == ["scripting", "generic"]

    def test_invalid_environment_value(self, monkeypatch):
        from slopwatch.core.config_manager import ConfigManager
        from slopwatch.core.errors import ConfigurationError

        monkeypatch.setenv("SLOPWATCH_ANALYSIS_WINDOW_MS", "0")

        with pytest.raises(ConfigurationError):
            ConfigManager().initialize()

    def test_update_and_get(self):
        from slopwatch.core.config_manager import ConfigManager

        manager = ConfigManager()
        changes = []
        manager.add_change_callback(lambda path, old, new: changes.append((path, old, new)))

        manager.update({"correlation.analysis_window_ms": 9000})

        assert manager.get("correlation.analysis_window_ms") == 9000
        assert manager.get("correlation.nope", "fallback") == "fallback"
        assert changes == [("correlation.analysis_window_ms", 30000, 9000)]

    def test_update_validates(self):
        from slopwatch.core.config_manager import ConfigManager
        from slopwatch.core.errors import ConfigurationError

        manager = ConfigManager()

        with pytest.raises(ConfigurationError):
            manager.set("detection.verification_cutoff", 2.0)
        with pytest.raises(ConfigurationError):
            manager.set("correlation.no_such_key", 1)

    def test_failed_update_is_rolled_back(self):
        from slopwatch.core.config_manager import ConfigManager
        from slopwatch.core.errors import ConfigurationError

        manager = ConfigManager()

        with pytest.raises(ConfigurationError):
            manager.update({
                "correlation.analysis_window_ms": 5000,
                "correlation.enabled_detectors": ["astrology"],
            })

        assert manager.config.correlation.analysis_window_ms == 30000
        assert "astrology" not in manager.config.correlation.enabled_detectors

    def test_frozen_config_rejects_updates(self):
        from slopwatch.core.config_manager import ConfigManager
        from slopwatch.core.errors import ConfigurationError

        manager = ConfigManager()
        manager.freeze()

        with pytest.raises(ConfigurationError):
            manager.set("correlation.auto_analyze", False)

        manager.unfreeze()
        manager.set("correlation.auto_analyze", False)
        assert manager.config.correlation.auto_analyze is False

    def test_save_and_reload(self, temp_dir):
        from slopwatch.core.config_manager import ConfigManager

        path = temp_dir / "saved.json"
        manager = ConfigManager()
        manager.set("watcher.debounce_ms", 750)
        manager.save_to_file(str(path))

        reloaded = ConfigManager().initialize(str(path), load_env=False)

        assert reloaded.watcher.debounce_ms == 750
