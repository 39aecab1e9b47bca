"""
Alert data models for the thermal alerting core.

This module defines alert-related structures including rule definitions,
materialized alert events, history entries and running statistics.

Models:
    ThermalAlertType: Detection policy types
    AlertPriority: Priority levels (low, medium, high, critical)
    NotificationMethod: Delivery channels (popup, sound, email, log)
    RuleConditions: Pixel-count and filtering options of a rule
    AlertRule: A named detection policy
    AlertLocation: Integer cluster centroid
    ThermalAlert: A materialized detection event
    AlertHistoryEntry: Historical copy of an alert with lifecycle flags
    AlertStatistics: Running alert counters
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from thermosentry.models.frame import Region


class ThermalAlertType(str, Enum):
    """
    Detection policy types.

    Attributes:
        HIGH_TEMPERATURE: Pixels at or above a temperature.
        LOW_TEMPERATURE: Pixels at or below a temperature.
        RAPID_CHANGE: Temperature change rate (extension point).
        ANOMALY: Statistical outliers measured in standard deviations.
        PATTERN: Shape or gradient patterns (extension point).
    """

    HIGH_TEMPERATURE = "high_temperature"
    LOW_TEMPERATURE = "low_temperature"
    RAPID_CHANGE = "rapid_change"
    ANOMALY = "anomaly"
    PATTERN = "pattern"

    @property
    def is_spatial(self) -> bool:
        """Check whether alerts of this type carry a cluster region."""
        return self in (
            ThermalAlertType.HIGH_TEMPERATURE,
            ThermalAlertType.LOW_TEMPERATURE,
            ThermalAlertType.ANOMALY,
        )


class AlertPriority(str, Enum):
    """
    Alert priority levels.

    Attributes:
        LOW: Awareness only.
        MEDIUM: Investigate when convenient.
        HIGH: Investigate soon.
        CRITICAL: Immediate action required.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class NotificationMethod(str, Enum):
    """Delivery channels an alert can be fanned out to."""

    POPUP = "popup"
    SOUND = "sound"
    EMAIL = "email"
    LOG = "log"


class RuleConditions(BaseModel):
    """
    Pixel-count and filtering options of a rule.

    Attributes:
        min_pixel_count: Minimum flagged pixels before any alert is raised.
        spatial_filtering: Cluster flagged pixels; when off they form one group.
        temporal_filtering: Enforce the rule's min_duration across frames.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    min_pixel_count: int = Field(
        default=1,
        description="Minimum number of flagged pixels",
        ge=1,
    )
    spatial_filtering: bool = Field(
        default=True,
        description="Group flagged pixels into spatial clusters",
    )
    temporal_filtering: bool = Field(
        default=True,
        description="Require violations to persist for min_duration",
    )


class AlertRule(BaseModel):
    """
    A named detection policy.

    The meaning of ``threshold`` depends on the rule type: degrees Celsius for
    the temperature types, a count of standard deviations for anomalies.

    Attributes:
        id: Unique rule identifier.
        name: Human-readable name.
        type: Detection policy type.
        threshold: Detection threshold.
        priority: Priority given to alerts from this rule.
        enabled: Whether the rule is evaluated.
        region: Optional spatial restriction.
        hysteresis: Slack the metric must cross back past before re-arming.
        min_duration: Milliseconds a violation must persist before alerting.
        cooldown_period: Milliseconds of suppression after a trigger.
        notification_methods: Channels that receive alerts from this rule.
        conditions: Pixel-count and filtering options.

    Example:
        >>> rule = AlertRule(
        ...     id="high-temp-critical",
        ...     name="Critical High Temperature",
        ...     type=ThermalAlertType.HIGH_TEMPERATURE,
        ...     threshold=80.0,
        ...     priority=AlertPriority.CRITICAL,
        ...     cooldown_period=30000,
        ... )
    """

    model_config = {"frozen": True, "extra": "forbid"}

    id: str = Field(
        ...,
        description="Unique rule identifier (no colons or whitespace)",
        min_length=1,
        max_length=100,
        pattern=r"^[^:\s]+$",
    )
    name: str = Field(
        ...,
        description="Human-readable name",
        min_length=1,
        max_length=200,
    )
    type: ThermalAlertType = Field(
        ...,
        description="Detection policy type",
    )
    threshold: float = Field(
        ...,
        description="Threshold (Celsius, or sigma count for anomaly rules)",
    )
    priority: AlertPriority = Field(
        default=AlertPriority.MEDIUM,
        description="Priority given to triggered alerts",
    )
    enabled: bool = Field(
        default=True,
        description="Whether this rule is evaluated",
    )
    region: Optional[Region] = Field(
        default=None,
        description="Spatial restriction (None means the whole frame)",
    )
    hysteresis: float = Field(
        default=0.0,
        description="Dead-band before a triggered location re-arms",
        ge=0,
    )
    min_duration: int = Field(
        default=0,
        description="Milliseconds a violation must persist",
        ge=0,
    )
    cooldown_period: int = Field(
        default=0,
        description="Milliseconds of suppression after a trigger",
        ge=0,
    )
    notification_methods: List[NotificationMethod] = Field(
        default_factory=list,
        description="Delivery channels for triggered alerts",
    )
    conditions: RuleConditions = Field(
        default_factory=RuleConditions,
        description="Pixel-count and filtering options",
    )

    @property
    def has_persistence(self) -> bool:
        """Check if this rule requires a violation to persist."""
        return self.conditions.temporal_filtering and self.min_duration > 0

    @property
    def has_hysteresis(self) -> bool:
        """Check if triggered locations latch until the dead-band is crossed."""
        return self.hysteresis > 0


class AlertLocation(BaseModel):
    """Integer pixel coordinate of a cluster centroid."""

    model_config = {"frozen": True, "extra": "forbid"}

    x: int = Field(..., description="Centroid column")
    y: int = Field(..., description="Centroid row")


class ThermalAlert(BaseModel):
    """
    A materialized detection event.

    Created by rule evaluation. Enters the engine's active set, then is
    acknowledged and/or resolved by explicit caller action.

    Attributes:
        id: Unique alert identifier (``{rule_id}-{frame_number}-{index}``).
        rule_id: Rule that produced the alert.
        type: Rule type.
        priority: Rule priority.
        timestamp: Frame timestamp in milliseconds.
        message: Human-readable description.
        location: Cluster centroid.
        temperature: Representative temperature.
        region: Cluster bounding rectangle.
        metadata: Diagnostic fields (pixel count, average, z-score, threshold).
    """

    model_config = {"frozen": True, "extra": "forbid"}

    id: str = Field(..., description="Unique alert identifier")
    rule_id: str = Field(..., description="Rule that produced the alert")
    type: ThermalAlertType = Field(..., description="Rule type")
    priority: AlertPriority = Field(..., description="Alert priority")
    timestamp: int = Field(..., description="Frame timestamp (ms)", ge=0)
    message: str = Field(..., description="Human-readable description")
    location: AlertLocation = Field(..., description="Cluster centroid")
    temperature: float = Field(..., description="Representative temperature")
    region: Optional[Region] = Field(
        default=None,
        description="Cluster bounding rectangle",
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Diagnostic fields",
    )


class AlertHistoryEntry(BaseModel):
    """
    Historical copy of an alert with its lifecycle flags.

    Attributes:
        alert: The alert as emitted.
        recorded_at: Wall-clock time the alert entered the history.
        acknowledged: Whether the alert was acknowledged.
        acknowledged_at: When it was acknowledged.
        resolved: Whether the alert was resolved.
        resolved_at: When it was resolved.
    """

    model_config = {"extra": "forbid"}

    alert: ThermalAlert
    recorded_at: datetime = Field(default_factory=datetime.utcnow)
    acknowledged: bool = False
    acknowledged_at: Optional[datetime] = None
    resolved: bool = False
    resolved_at: Optional[datetime] = None

    def acknowledge(self, timestamp: Optional[datetime] = None) -> "AlertHistoryEntry":
        """Return a copy marked as acknowledged."""
        return self.model_copy(
            update={
                "acknowledged": True,
                "acknowledged_at": timestamp or datetime.utcnow(),
            }
        )

    def resolve(self, timestamp: Optional[datetime] = None) -> "AlertHistoryEntry":
        """Return a copy marked as resolved."""
        return self.model_copy(
            update={
                "resolved": True,
                "resolved_at": timestamp or datetime.utcnow(),
            }
        )


class AlertStatistics(BaseModel):
    """
    Running alert counters.

    Attributes:
        total_alerts: Alerts emitted since construction.
        alerts_by_type: Counts keyed by rule type value.
        alerts_by_priority: Counts keyed by priority value.
        average_response_time_ms: Mean time from recording to acknowledgement.
        last_calculated: When the counters last changed.
    """

    model_config = {"extra": "forbid"}

    total_alerts: int = 0
    alerts_by_type: Dict[str, int] = Field(default_factory=dict)
    alerts_by_priority: Dict[str, int] = Field(default_factory=dict)
    average_response_time_ms: float = 0.0
    last_calculated: datetime = Field(default_factory=datetime.utcnow)
