# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for configuration loading and validation."""

import tempfile
from pathlib import Path

import pytest
import yaml

from corpus_index.config import Config, ConfigurationError


def test_default_config_when_file_missing():
    """Test that defaults are used when config file is missing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "nonexistent.yml"
        config = Config(config_path=config_path)

        # Check all defaults
        assert config.min_token_length == 3
        assert config.default_max_results == 0
        assert config.slow_query_threshold_ms == 250
        assert config.log_statistics_on_rebuild is True
        assert config.exclude_packages == []


def test_valid_config_loading():
    """Test loading a valid configuration file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_data = {
            "min_token_length": 2,
            "default_max_results": 50,
            "log_statistics_on_rebuild": False,
        }

        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        assert config.min_token_length == 2
        assert config.default_max_results == 50
        assert config.log_statistics_on_rebuild is False
        # Defaults for unspecified values
        assert config.slow_query_threshold_ms == 250


def test_invalid_parameter_values():
    """Test that invalid parameter values are rejected and defaults used."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_data = {
            "min_token_length": 0,  # Invalid: must be >= 1
            "default_max_results": -1,  # Invalid: must be >= 0
            "slow_query_threshold_ms": 0,  # Invalid: must be > 0
        }

        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        # Should use defaults for invalid values
        assert config.min_token_length == 3
        assert config.default_max_results == 0
        assert config.slow_query_threshold_ms == 250


def test_invalid_parameter_types():
    """Test that invalid parameter types are rejected and defaults used."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_data = {
            "min_token_length": "not_a_number",
            "default_max_results": True,  # bool is not accepted as int
            "log_statistics_on_rebuild": "not_a_boolean",
            "exclude_packages": "not_a_list",
        }

        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        # Should use defaults for invalid types
        assert config.min_token_length == 3
        assert config.default_max_results == 0
        assert config.log_statistics_on_rebuild is True
        assert config.exclude_packages == []


def test_unknown_parameters_ignored():
    """Test that unknown parameters are ignored."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_data = {
            "min_token_length": 4,
            "unknown_parameter": "some_value",
            "another_unknown": 123,
        }

        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        # Known parameters should be loaded
        assert config.min_token_length == 4
        # Unknown parameters should be ignored (no error)


def test_empty_config_file():
    """Test that an empty config file uses all defaults."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_path.write_text("", encoding="utf-8")

        config = Config(config_path=config_path)

        assert config.min_token_length == 3
        assert config.default_max_results == 0


def test_non_mapping_config_file():
    """Test that a YAML list instead of a mapping uses all defaults."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_path.write_text("- one\n- two\n", encoding="utf-8")

        config = Config(config_path=config_path)

        assert config.min_token_length == 3


def test_invalid_yaml_syntax():
    """Test that invalid YAML syntax falls back to defaults."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_path.write_text("invalid: yaml: syntax: here:", encoding="utf-8")

        config = Config(config_path=config_path)

        # Should use all defaults
        assert config.min_token_length == 3
        assert config.slow_query_threshold_ms == 250


def test_list_parameters():
    """Test that list parameters are handled correctly."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_data = {"exclude_packages": ["com.generated", "com.vendor"]}

        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        assert config.exclude_packages == ["com.generated", "com.vendor"]


def test_list_with_non_string_entries_rejected():
    """Test that exclude_packages must contain only strings."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_data = {"exclude_packages": ["com.generated", 42]}

        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        assert config.exclude_packages == []


def test_defaults_are_not_shared():
    """Test that mutating one config's list does not leak into another."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "nonexistent.yml"
        first = Config(config_path=config_path)
        first.exclude_packages.append("com.x")

        second = Config(config_path=config_path)

        assert second.exclude_packages == []


def test_directory_config_path_raises():
    """Test that pointing the config at a directory is a hard error."""
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(ConfigurationError, match="is a directory"):
            Config(config_path=Path(tmpdir))
