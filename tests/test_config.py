# tests/test_config.py
"""
Tests for RunnerConfig.
"""

import pytest

from jsonui_testrunner.config import PRESET_OVERRIDES, RunnerConfig, list_presets
from jsonui_testrunner.exceptions import ConfigError


class TestRunnerConfig:
    """Tests for defaults, presets and overrides."""

    def test_defaults(self):
        config = RunnerConfig()
        assert config.default_timeout == 5.0
        assert config.polling_interval == 0.1
        assert config.platform == "android"
        assert config.screenshot_on_failure is True

    def test_step_timeout_is_milliseconds(self):
        """Step timeouts are ms; absent falls back to the default in seconds."""
        config = RunnerConfig(default_timeout=7.0)
        assert config.step_timeout(None) == 7.0
        assert config.step_timeout(1500) == 1.5
        assert config.step_timeout(-10) == 0.0

    def test_presets(self):
        assert RunnerConfig().with_preset("fast").default_timeout == PRESET_OVERRIDES["fast"]["default_timeout"]
        assert RunnerConfig().with_preset("default") == RunnerConfig()
        assert set(list_presets()) == {"default", "fast", "slow", "ci"}

    def test_unknown_preset(self):
        with pytest.raises(ConfigError):
            RunnerConfig().with_preset("turbo")

    def test_overrides_are_coerced(self):
        """String values from YAML or env are coerced to the field type."""
        config = RunnerConfig().with_overrides(default_timeout="2.5", verbose="yes", platform="ios")
        assert config.default_timeout == 2.5
        assert config.verbose is True
        assert config.platform == "ios"

    def test_none_overrides_ignored(self):
        assert RunnerConfig().with_overrides(platform=None).platform == "android"

    def test_unknown_field(self):
        with pytest.raises(ConfigError) as exc_info:
            RunnerConfig().with_overrides(retries=3)
        assert "retries" in str(exc_info.value)

    def test_negative_duration(self):
        with pytest.raises(ConfigError):
            RunnerConfig().with_overrides(settle_delay=-1)


class TestFromYaml:
    """Tests for loading configuration files."""

    def test_preset_then_file_values(self, tmp_path):
        """File values win over the preset named in the file."""
        path = tmp_path / "runner.yaml"
        path.write_text("preset: slow\nplatform: ios\ndefault_timeout: 3\n", encoding="utf-8")
        config = RunnerConfig.from_yaml(str(path))
        assert config.platform == "ios"
        assert config.default_timeout == 3.0
        assert config.polling_interval == PRESET_OVERRIDES["slow"]["polling_interval"]

    def test_runner_section(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("runner:\n  artifacts_dir: out\n", encoding="utf-8")
        assert RunnerConfig.from_yaml(str(path)).artifacts_dir == "out"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            RunnerConfig.from_yaml(str(tmp_path / "nope.yaml"))

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            RunnerConfig.from_yaml(str(path))
