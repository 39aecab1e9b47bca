"""
Pydantic models for application configuration.

This module defines all configuration models that are validated when loading
YAML configuration files. The models ensure type safety and provide sensible
defaults for optional settings.

Configuration files:
    - config/engine.yaml: Alerting, ranging, auto-range, isotherm and logging settings
    - config/rules.yaml: Alert rule definitions
    - config/profiles.yaml: Additional temperature profiles

Example:
    >>> from thermosentry.config.models import AppConfig
    >>> config = AppConfig()
    >>> config.alerting.history_limit
    1000
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from thermosentry.models.alerts import AlertRule
from thermosentry.models.ranging import (
    AutoRangeSettings,
    IsothermSettings,
    TemperatureProfile,
)


# =============================================================================
# ENUMS
# =============================================================================


class LogFormat(str, Enum):
    """Logging format options."""

    JSON = "json"
    TEXT = "text"


class LogLevel(str, Enum):
    """Logging level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# =============================================================================
# ENGINE CONFIGURATION
# =============================================================================


class AlertingConfig(BaseModel):
    """Alert rule engine and notification settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    history_limit: int = Field(
        default=1000,
        description="Maximum alert history entries kept",
        ge=1,
    )
    location_grid: float = Field(
        default=1.0,
        description="Cell size (pixels) used to discretise cluster centroids",
        gt=0,
    )
    temperature_cluster_radius: float = Field(
        default=10.0,
        description="Clustering radius for high/low temperature rules (pixels)",
        ge=0,
    )
    anomaly_cluster_radius: float = Field(
        default=15.0,
        description="Clustering radius for anomaly rules (pixels)",
        ge=0,
    )
    notification_queue_size: int = Field(
        default=1024,
        description="Maximum pending notifications before new ones are dropped",
        ge=1,
    )


class RangingConfig(BaseModel):
    """
    Range controller window sizes and sample bounds.

    Samples are kept only when strictly inside the plausible bounds; the
    background estimate uses samples strictly inside the background bounds.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    sample_history: int = Field(
        default=1000,
        description="Maximum temperature samples kept",
        ge=1,
    )
    frame_history: int = Field(
        default=50,
        description="Maximum frames kept",
        ge=1,
    )
    auto_range_window: int = Field(
        default=100,
        description="Trailing samples used by each auto-range step",
        ge=1,
    )
    min_auto_range_samples: int = Field(
        default=10,
        description="Samples required before auto-ranging adapts",
        ge=1,
    )
    plausible_min: float = Field(default=-100.0, description="Lower plausible sample bound")
    plausible_max: float = Field(default=200.0, description="Upper plausible sample bound")
    background_min: float = Field(default=-50.0, description="Lower background sample bound")
    background_max: float = Field(default=100.0, description="Upper background sample bound")
    initial_background: float = Field(
        default=20.0,
        description="Background temperature before any frame",
    )

    @model_validator(mode="after")
    def validate_bounds(self) -> "RangingConfig":
        """Validate that every bound pair is ordered."""
        if self.plausible_min >= self.plausible_max:
            raise ValueError("plausible_min must be < plausible_max")
        if self.background_min >= self.background_max:
            raise ValueError("background_min must be < background_max")
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    format: LogFormat = Field(
        default=LogFormat.JSON,
        description="Log output format",
    )
    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Default log level",
    )


class EngineConfig(BaseModel):
    """Complete engine.yaml configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    alerting: AlertingConfig = Field(
        default_factory=AlertingConfig,
        description="Alert engine configuration",
    )
    ranging: RangingConfig = Field(
        default_factory=RangingConfig,
        description="Range controller configuration",
    )
    auto_range: AutoRangeSettings = Field(
        default_factory=AutoRangeSettings,
        description="Initial auto-range policy",
    )
    isotherms: IsothermSettings = Field(
        default_factory=IsothermSettings,
        description="Initial isotherm settings",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )


# =============================================================================
# ROOT CONFIGURATION
# =============================================================================


class AppConfig(BaseModel):
    """
    Root application configuration.

    Aggregates all configuration sections into a single validated object.

    Attributes:
        rules: Alert rules. None means the built-in default rules.
        profiles: Extra profiles merged over the built-ins by id.

    Example:
        >>> config = load_config("config")
        >>> print([rule.id for rule in config.rules or []])
    """

    model_config = {"frozen": True, "extra": "forbid"}

    alerting: AlertingConfig = Field(default_factory=AlertingConfig)
    ranging: RangingConfig = Field(default_factory=RangingConfig)
    auto_range: AutoRangeSettings = Field(default_factory=AutoRangeSettings)
    isotherms: IsothermSettings = Field(default_factory=IsothermSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    rules: Optional[List[AlertRule]] = Field(
        default=None,
        description="Alert rules (None for the built-in defaults)",
    )
    profiles: List[TemperatureProfile] = Field(
        default_factory=list,
        description="Additional temperature profiles",
    )

    @model_validator(mode="after")
    def validate_config(self) -> "AppConfig":
        """Validate that rule and profile ids are unique."""
        if self.rules is not None:
            rule_ids = [rule.id for rule in self.rules]
            duplicates = sorted({r for r in rule_ids if rule_ids.count(r) > 1})
            if duplicates:
                raise ValueError(f"Duplicate rule ids: {duplicates}")

        profile_ids = [profile.id for profile in self.profiles]
        duplicates = sorted({p for p in profile_ids if profile_ids.count(p) > 1})
        if duplicates:
            raise ValueError(f"Duplicate profile ids: {duplicates}")

        return self

    def get_rule(self, rule_id: str) -> Optional[AlertRule]:
        for rule in self.rules or []:
            if rule.id == rule_id:
                return rule
        return None

    def get_profile(self, profile_id: str) -> Optional[TemperatureProfile]:
        for profile in self.profiles:
            if profile.id == profile_id:
                return profile
        return None
