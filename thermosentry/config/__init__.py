"""
Configuration management for the thermal alerting core.

This module handles loading and validating configuration from YAML files.
All configuration values are validated using Pydantic models to ensure
type safety and catch configuration errors early.

Configuration is loaded from YAML files in the config/ directory:
    - engine.yaml: Alerting, ranging, auto-range, isotherm and logging settings
    - rules.yaml: Alert rule definitions
    - profiles.yaml: Additional temperature profiles

Environment variables:
    - THERMOSENTRY_CONFIG_DIR: Configuration directory
    - LOG_LEVEL: Application log level

Example:
    >>> from thermosentry.config import load_config
    >>> config = load_config()
    >>> print(config.alerting.location_grid)

Modules:
    loader: Configuration file loading utilities
    models: Pydantic models for configuration validation
"""

from thermosentry.config.loader import ConfigLoadError, ConfigLoader, load_config
from thermosentry.config.models import (
    # Enums
    LogFormat,
    LogLevel,
    # Sections
    AlertingConfig,
    RangingConfig,
    LoggingConfig,
    EngineConfig,
    # Root
    AppConfig,
)

__all__ = [
    # Loader
    "ConfigLoadError",
    "ConfigLoader",
    "load_config",
    # Enums
    "LogFormat",
    "LogLevel",
    # Sections
    "AlertingConfig",
    "RangingConfig",
    "LoggingConfig",
    "EngineConfig",
    # Root
    "AppConfig",
]
