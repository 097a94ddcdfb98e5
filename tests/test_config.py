"""Unit tests for configuration management module."""

import json
import os
from pathlib import Path
from typing import Any

import pytest
import yaml
from pydantic import ValidationError

from depgraph.config import (
    ConfigManager,
    GraphConfig,
    get_config,
    load_config,
    reset_config,
)
from depgraph.graph.dependency_graph import DependencyGraph


@pytest.fixture
def valid_config_dict() -> dict[str, Any]:
    """Fixture providing valid configuration dictionary."""
    return {
        "cycle_allowed": False,
        "logging_level": "DEBUG",
        "json_logs": False,
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, valid_config_dict: dict[str, Any]) -> Path:
    """Fixture providing temporary YAML config file."""
    config_path = tmp_path / "depgraph.yaml"
    with config_path.open("w") as f:
        yaml.safe_dump(valid_config_dict, f)
    return config_path


@pytest.fixture(autouse=True)
def clean_env_vars(monkeypatch):
    """Clean environment variables and the singleton before each test."""
    for key in list(os.environ.keys()):
        if key.startswith("DEPGRAPH_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


class TestGraphConfig:
    """Tests for GraphConfig model."""

    def test_defaults(self):
        """Test creating GraphConfig with defaults."""
        config = GraphConfig()

        assert config.cycle_allowed is False
        assert config.logging_level == "INFO"
        assert config.json_logs is True

    def test_custom_values(self, valid_config_dict):
        """Test GraphConfig with custom values."""
        config = GraphConfig(**valid_config_dict)

        assert config.logging_level == "DEBUG"
        assert config.json_logs is False

    def test_logging_level_validation(self):
        """Test logging_level accepts known levels only."""
        for level in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            assert GraphConfig(logging_level=level).logging_level == level

        with pytest.raises(ValidationError):
            GraphConfig(logging_level="VERBOSE")

    def test_logging_level_is_normalized(self):
        """Test that lower-case levels are accepted."""
        assert GraphConfig(logging_level=" warning ").logging_level == "WARNING"

    def test_validate_config_defaults_have_no_warnings(self):
        """Test that defaults raise no advisory warnings."""
        assert GraphConfig().validate_config() == []

    def test_validate_config_warns_on_cycle_mode(self):
        """Test that enabling cycle mode is flagged."""
        warnings = GraphConfig(cycle_allowed=True).validate_config()

        assert len(warnings) == 1
        assert "Cycle pre-check is disabled" in warnings[0]


class TestFromYaml:
    """Tests for loading configuration files."""

    def test_load_yaml(self, temp_config_file):
        """Test loading a YAML configuration file."""
        config = GraphConfig.from_yaml(temp_config_file)

        assert config.logging_level == "DEBUG"
        assert config.json_logs is False

    def test_load_json(self, tmp_path):
        """Test loading a JSON configuration file."""
        config_path = tmp_path / "depgraph.json"
        config_path.write_text(json.dumps({"cycle_allowed": True}))

        config = GraphConfig.from_yaml(config_path)

        assert config.cycle_allowed is True

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            GraphConfig.from_yaml(tmp_path / "absent.yaml")

    def test_empty_file(self, tmp_path):
        """Test that an empty file raises ValueError."""
        config_path = tmp_path / "depgraph.yaml"
        config_path.write_text("")

        with pytest.raises(ValueError, match="empty"):
            GraphConfig.from_yaml(config_path)

    def test_invalid_yaml(self, tmp_path):
        """Test that malformed YAML raises ValueError."""
        config_path = tmp_path / "depgraph.yaml"
        config_path.write_text("cycle_allowed: [unclosed")

        with pytest.raises(ValueError, match="Invalid YAML"):
            GraphConfig.from_yaml(config_path)

    @pytest.mark.parametrize("content", ["- cycle_allowed\n- json_logs\n", "just a string\n", "42\n"])
    def test_non_mapping_top_level(self, tmp_path, content):
        """Test that a list or scalar document raises ValueError."""
        config_path = tmp_path / "depgraph.yaml"
        config_path.write_text(content)

        with pytest.raises(ValueError, match="must contain a mapping"):
            GraphConfig.from_yaml(config_path)

    def test_invalid_values(self, tmp_path):
        """Test that invalid values raise ValidationError."""
        config_path = tmp_path / "depgraph.yaml"
        config_path.write_text("logging_level: LOUD\n")

        with pytest.raises(ValidationError):
            GraphConfig.from_yaml(config_path)


class TestEnvironmentOverrides:
    """Tests for environment variable override support."""

    def test_boolean_override(self, temp_config_file, monkeypatch):
        """Test boolean environment variable override."""
        monkeypatch.setenv("DEPGRAPH_CYCLE_ALLOWED", "yes")
        monkeypatch.setenv("DEPGRAPH_JSON_LOGS", "1")

        config = GraphConfig.from_yaml(temp_config_file)

        assert config.cycle_allowed is True
        assert config.json_logs is True

    def test_logging_level_override(self, temp_config_file, monkeypatch):
        """Test string environment variable override."""
        monkeypatch.setenv("DEPGRAPH_LOGGING_LEVEL", "error")

        config = GraphConfig.from_yaml(temp_config_file)

        assert config.logging_level == "ERROR"

    def test_false_override(self, tmp_path, monkeypatch):
        """Test that non-truthy strings disable a flag set in the file."""
        config_path = tmp_path / "depgraph.yaml"
        config_path.write_text("cycle_allowed: true\n")
        monkeypatch.setenv("DEPGRAPH_CYCLE_ALLOWED", "false")

        assert GraphConfig.from_yaml(config_path).cycle_allowed is False


class TestConfigManager:
    """Tests for the configuration singleton."""

    def test_load_config_explicit_path(self, temp_config_file):
        """Test loading from an explicit path."""
        config = load_config(temp_config_file)

        assert config.logging_level == "DEBUG"

    def test_load_config_default_location(self, temp_config_file, monkeypatch):
        """Test discovery of depgraph.yaml in the working directory."""
        monkeypatch.chdir(temp_config_file.parent)

        config = load_config()

        assert config.logging_level == "DEBUG"

    def test_load_config_nothing_found(self, tmp_path, monkeypatch):
        """Test that a missing default file raises FileNotFoundError."""
        monkeypatch.chdir(tmp_path)

        with pytest.raises(FileNotFoundError, match="No configuration file found"):
            load_config()

    def test_get_config_is_cached(self, temp_config_file):
        """Test that get_config returns the same instance until reloaded."""
        first = get_config(temp_config_file)
        second = get_config()

        assert first is second
        assert ConfigManager._instance is first

    def test_get_config_reload(self, temp_config_file):
        """Test that reload=True reads the file again."""
        first = get_config(temp_config_file)
        temp_config_file.write_text("logging_level: WARNING\n")

        reloaded = get_config(temp_config_file, reload=True)

        assert reloaded is not first
        assert reloaded.logging_level == "WARNING"

    def test_reset_config(self, temp_config_file):
        """Test that reset_config clears the singleton."""
        get_config(temp_config_file)
        reset_config()

        assert ConfigManager._instance is None


@pytest.mark.integration
class TestConfigIntegration:
    """Integration tests for configuration with the graph."""

    def test_graph_from_loaded_config(self, tmp_path):
        """Test that a loaded config drives the graph's cycle mode."""
        config_path = tmp_path / "depgraph.yaml"
        config_path.write_text("cycle_allowed: true\n")

        graph = DependencyGraph.from_config(load_config(config_path))
        graph.add_node("a")
        graph.add_node("b", ["a"])

        assert graph.will_make_dependency_cycle("a", "b") is None
