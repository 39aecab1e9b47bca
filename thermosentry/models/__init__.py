"""
Shared Pydantic data models for the thermal alerting core.

Modules:
    frame: Thermal frames, flagged points and pixel regions
    alerts: Alert rules, alerts, history entries and statistics
    ranging: Temperature ranges, profiles, thresholds and auto-range policy

Example:
    >>> from thermosentry.models import ThermalFrame, AlertRule, ThermalAlertType
    >>> from thermosentry.models import TemperatureProfile, AutoRangeSettings
"""

# Frame models
from thermosentry.models.frame import (
    Region,
    TemperaturePoint,
    ThermalFrame,
)

# Alert models
from thermosentry.models.alerts import (
    AlertHistoryEntry,
    AlertLocation,
    AlertPriority,
    AlertRule,
    AlertStatistics,
    NotificationMethod,
    RuleConditions,
    ThermalAlert,
    ThermalAlertType,
)

# Range models
from thermosentry.models.ranging import (
    AlertThreshold,
    AutoRangeSettings,
    DetectionSettings,
    EnvironmentalContext,
    IsothermConfig,
    IsothermSettings,
    IsothermStyle,
    ProfileCategory,
    TemperatureAlert,
    TemperatureProfile,
    TemperatureRange,
    TemperatureStatistics,
    ThresholdCondition,
)

__all__ = [
    # Frame
    "ThermalFrame",
    "TemperaturePoint",
    "Region",
    # Alerts
    "ThermalAlertType",
    "AlertPriority",
    "NotificationMethod",
    "RuleConditions",
    "AlertRule",
    "AlertLocation",
    "ThermalAlert",
    "AlertHistoryEntry",
    "AlertStatistics",
    # Ranging
    "TemperatureRange",
    "DetectionSettings",
    "ThresholdCondition",
    "AlertThreshold",
    "ProfileCategory",
    "TemperatureProfile",
    "AutoRangeSettings",
    "IsothermStyle",
    "IsothermConfig",
    "IsothermSettings",
    "EnvironmentalContext",
    "TemperatureAlert",
    "TemperatureStatistics",
]
