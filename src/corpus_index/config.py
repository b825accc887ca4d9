# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Configuration loading and validation for the corpus index."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = ".corpus_index.yml"


class ConfigurationError(Exception):
    """Raised when configuration validation fails critically."""

    pass


class Config:
    """Configuration for the corpus index.

    Loads configuration from .corpus_index.yml with validation and defaults.
    """

    DEFAULTS = {
        "min_token_length": 3,
        "default_max_results": 0,  # 0 = unlimited
        "slow_query_threshold_ms": 250,
        "log_statistics_on_rebuild": True,
        "exclude_packages": [],
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses default location.
        """
        if config_path is None:
            config_path = Path.cwd() / DEFAULT_CONFIG_FILENAME

        self.config_path = config_path
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load and validate configuration from file.

        Raises:
            ConfigurationError: If config_path points to a directory.
        """
        if self.config_path.is_dir():
            raise ConfigurationError(f"Configuration path is a directory: {self.config_path}")

        if not self.config_path.exists():
            logger.info(f"Configuration file not found at {self.config_path}, using defaults")
            self._config = self._defaults()
            return

        try:
            with open(self.config_path, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f)

            if loaded_config is None:
                logger.warning("Configuration file is empty, using defaults")
                self._config = self._defaults()
                return

            if not isinstance(loaded_config, dict):
                logger.warning(
                    f"Configuration file must contain a YAML dictionary, "
                    f"got {type(loaded_config)}, using defaults"
                )
                self._config = self._defaults()
                return

            self._config = self._defaults()
            self._validate_and_merge(loaded_config)

        except yaml.YAMLError as e:
            logger.warning(
                f"Error parsing configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._defaults()
        except OSError as e:
            logger.warning(
                f"Could not read configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._defaults()

    def _defaults(self) -> Dict[str, Any]:
        # Lists are copied so callers can't mutate the class defaults
        return {k: list(v) if isinstance(v, list) else v for k, v in self.DEFAULTS.items()}

    def _validate_and_merge(self, loaded_config: Dict[str, Any]) -> None:
        """Validate loaded configuration and merge with defaults.

        Invalid parameters are logged as warnings and defaults are used.
        """
        for key, value in loaded_config.items():
            if key not in self.DEFAULTS:
                logger.warning(f"Unknown configuration parameter '{key}', ignoring")
                continue

            if not self._validate_parameter(key, value):
                logger.warning(
                    f"Invalid value for '{key}': {value}, using default {self.DEFAULTS[key]}"
                )
                continue

            self._config[key] = value

    def _validate_parameter(self, key: str, value: Any) -> bool:
        """Validate a configuration parameter.

        Returns:
            True if valid, False if invalid
        """
        expected_type = type(self.DEFAULTS[key])
        # bool is a subclass of int; reject it for numeric parameters
        if expected_type is int and isinstance(value, bool):
            return False
        if not isinstance(value, expected_type):
            return False

        if key == "min_token_length":
            return bool(1 <= value <= 64)
        elif key == "default_max_results":
            return bool(value >= 0)
        elif key == "slow_query_threshold_ms":
            return bool(value > 0)
        elif key == "exclude_packages":
            return all(isinstance(pkg, str) for pkg in value)

        return True

    @property
    def min_token_length(self) -> int:
        """Shortest content token written to the token index."""
        value = self._config["min_token_length"]
        assert isinstance(value, int)
        return value

    @property
    def default_max_results(self) -> int:
        """Result cap for queries without max_results (0 = unlimited)."""
        value = self._config["default_max_results"]
        assert isinstance(value, int)
        return value

    @property
    def slow_query_threshold_ms(self) -> int:
        """Structured queries slower than this are logged as warnings."""
        value = self._config["slow_query_threshold_ms"]
        assert isinstance(value, int)
        return value

    @property
    def log_statistics_on_rebuild(self) -> bool:
        """Whether to log index statistics after a full reindex."""
        value = self._config["log_statistics_on_rebuild"]
        assert isinstance(value, bool)
        return value

    @property
    def exclude_packages(self) -> List[str]:
        """Packages always excluded from structured searches."""
        value = self._config["exclude_packages"]
        assert isinstance(value, list)
        return value
