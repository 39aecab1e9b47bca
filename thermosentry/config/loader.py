"""
Configuration loader for YAML-based application configuration.

This module provides utilities to load and validate configuration from YAML
files. All configuration is validated using Pydantic models to ensure type
safety and catch configuration errors early.

Configuration files expected:
    - config/engine.yaml: Engine settings (required)
    - config/rules.yaml: Alert rules (optional; built-in rules if absent)
    - config/profiles.yaml: Extra temperature profiles (optional)

Environment variables override:
    - THERMOSENTRY_CONFIG_DIR: Configuration directory used by load_config()
    - LOG_LEVEL: Application log level

Example:
    >>> from thermosentry.config.loader import load_config
    >>> config = load_config("config")
    >>> print(config.alerting.history_limit)
    1000
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from thermosentry.config.models import (
    AppConfig,
    EngineConfig,
    LoggingConfig,
    LogLevel,
)
from thermosentry.exceptions import ConfigurationError
from thermosentry.models.alerts import AlertRule
from thermosentry.models.ranging import TemperatureProfile

CONFIG_DIR_ENV = "THERMOSENTRY_CONFIG_DIR"
DEFAULT_CONFIG_DIR = "config"


class ConfigLoadError(ConfigurationError):
    """
    Raised when configuration loading fails.

    Attributes:
        message: Error message describing what went wrong.
        file_path: Path to the file that caused the error, if applicable.
        cause: Original exception that caused the error, if any.
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[Path] = None,
        cause: Optional[Exception] = None,
    ):
        self.message = message
        self.file_path = file_path
        self.cause = cause
        super().__init__(message)


class ConfigLoader:
    """
    Loads and validates application configuration from YAML files.

    Expects the following directory structure:
        config/
        ├── engine.yaml    - Engine, ranging and logging settings
        ├── rules.yaml     - Alert rules (optional)
        └── profiles.yaml  - Extra temperature profiles (optional)

    Example:
        >>> loader = ConfigLoader("config")
        >>> config = loader.load()
        >>> print([rule.id for rule in config.rules])
        ['high-temp-critical', 'rapid-temp-change', 'anomaly-detection']
    """

    def __init__(self, config_dir: Path | str = DEFAULT_CONFIG_DIR):
        """
        Initialize config loader.

        Args:
            config_dir: Path to configuration directory (default: 'config').

        Raises:
            ConfigLoadError: If config directory does not exist.
        """
        self.config_dir = Path(config_dir)
        if not self.config_dir.exists():
            raise ConfigLoadError(
                f"Configuration directory not found: {self.config_dir}",
                file_path=self.config_dir,
            )
        if not self.config_dir.is_dir():
            raise ConfigLoadError(
                f"Configuration path is not a directory: {self.config_dir}",
                file_path=self.config_dir,
            )

    def _load_yaml(self, filename: str, required: bool = True) -> Optional[Dict[str, Any]]:
        """
        Load a YAML file from the config directory.

        Args:
            filename: Name of YAML file (e.g., 'engine.yaml').
            required: Raise if the file is missing; otherwise return None.

        Returns:
            Dict containing parsed YAML content, or None for a missing
            optional file.

        Raises:
            ConfigLoadError: If a required file is missing, a file is empty,
                not a mapping, or invalid YAML.
        """
        file_path = self.config_dir / filename
        if not file_path.exists():
            if not required:
                return None
            raise ConfigLoadError(
                f"Configuration file not found: {file_path}",
                file_path=file_path,
            )

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigLoadError(
                f"Invalid YAML syntax in {file_path}: {e}",
                file_path=file_path,
                cause=e,
            ) from e
        except OSError as e:
            raise ConfigLoadError(
                f"Error reading {file_path}: {e}",
                file_path=file_path,
                cause=e,
            ) from e

        if data is None:
            raise ConfigLoadError(
                f"Configuration file is empty: {file_path}",
                file_path=file_path,
            )
        if not isinstance(data, dict):
            raise ConfigLoadError(
                f"Configuration file must contain a mapping: {file_path}",
                file_path=file_path,
            )
        return data

    def _load_engine(self) -> EngineConfig:
        """
        Load engine settings from engine.yaml.

        Raises:
            ConfigLoadError: If validation fails.
        """
        data = self._load_yaml("engine.yaml")

        try:
            return EngineConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigLoadError(
                f"Invalid engine configuration: {e}",
                file_path=self.config_dir / "engine.yaml",
                cause=e,
            ) from e

    def _load_rules(self) -> Optional[List[AlertRule]]:
        """
        Load alert rules from rules.yaml.

        Returns:
            List of rules, or None if the file is absent.

        Raises:
            ConfigLoadError: If validation fails.
        """
        data = self._load_yaml("rules.yaml", required=False)
        if data is None:
            return None

        rules = []
        for index, rule_data in enumerate(data.get("rules", []) or []):
            try:
                rules.append(AlertRule.model_validate(rule_data))
            except ValidationError as e:
                rule_id = rule_data.get("id", index) if isinstance(rule_data, dict) else index
                raise ConfigLoadError(
                    f"Invalid rule {rule_id!r}: {e}",
                    file_path=self.config_dir / "rules.yaml",
                    cause=e,
                ) from e
        return rules

    def _load_profiles(self) -> List[TemperatureProfile]:
        """
        Load extra temperature profiles from profiles.yaml.

        Raises:
            ConfigLoadError: If validation fails.
        """
        data = self._load_yaml("profiles.yaml", required=False)
        if data is None:
            return []

        profiles = []
        for index, profile_data in enumerate(data.get("profiles", []) or []):
            try:
                profiles.append(TemperatureProfile.model_validate(profile_data))
            except ValidationError as e:
                profile_id = (
                    profile_data.get("id", index) if isinstance(profile_data, dict) else index
                )
                raise ConfigLoadError(
                    f"Invalid profile {profile_id!r}: {e}",
                    file_path=self.config_dir / "profiles.yaml",
                    cause=e,
                ) from e
        return profiles

    def _get_log_level(self, default: LogLevel) -> LogLevel:
        """
        Get log level from environment.

        Environment variables:
            - LOG_LEVEL: Log level (default: the engine.yaml value)

        Returns:
            LogLevel enum value.
        """
        level_str = os.getenv("LOG_LEVEL")
        if not level_str:
            return default
        try:
            return LogLevel(level_str.upper())
        except ValueError:
            return default

    def load(self) -> AppConfig:
        """
        Load and validate all configuration files.

        Returns:
            AppConfig: Validated application configuration.

        Raises:
            ConfigLoadError: If any configuration is invalid or missing.
        """
        try:
            engine = self._load_engine()
            rules = self._load_rules()
            profiles = self._load_profiles()

            logging_config = LoggingConfig(
                format=engine.logging.format,
                level=self._get_log_level(engine.logging.level),
            )

            return AppConfig(
                alerting=engine.alerting,
                ranging=engine.ranging,
                auto_range=engine.auto_range,
                isotherms=engine.isotherms,
                logging=logging_config,
                rules=rules,
                profiles=profiles,
            )

        except ConfigLoadError:
            raise
        except ValidationError as e:
            raise ConfigLoadError(
                f"Configuration validation failed: {e}",
                cause=e,
            ) from e


def load_config(config_dir: Optional[Path | str] = None) -> AppConfig:
    """
    Convenience function to load application configuration.

    Args:
        config_dir: Path to configuration directory. Defaults to
            ``$THERMOSENTRY_CONFIG_DIR`` or 'config'.

    Returns:
        AppConfig: Validated application configuration.

    Raises:
        ConfigLoadError: If configuration loading fails.

    Example:
        >>> from thermosentry.config import load_config
        >>> config = load_config()
        >>> print(config.auto_range.percentile)
    """
    if config_dir is None:
        config_dir = os.getenv(CONFIG_DIR_ENV, DEFAULT_CONFIG_DIR)
    loader = ConfigLoader(config_dir)
    return loader.load()
