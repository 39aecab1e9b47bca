"""
Range and profile data models.

This module defines the state owned by the range controller: the active
temperature range, detection sensitivity, standing thresholds, profiles,
auto-range policy, isotherms and environmental context.

Models:
    TemperatureRange: Active working range (min < max)
    DetectionSettings: Detection sensitivity parameters
    ThresholdCondition: above, below, range
    AlertThreshold: Standing per-pixel threshold
    ProfileCategory: Profile grouping
    TemperatureProfile: Named range + settings + thresholds bundle
    AutoRangeSettings: Adaptation policy
    IsothermConfig / IsothermSettings: Derived isotherm lines
    EnvironmentalContext: Ambient conditions
    TemperatureAlert: Lightweight per-pixel threshold alert
    TemperatureStatistics: Summary of the sample window
"""

from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

from thermosentry.models.alerts import AlertPriority, AlertLocation


class TemperatureRange(BaseModel):
    """
    Active working temperature range.

    Example:
        >>> TemperatureRange(min=-10.0, max=50.0, accuracy=0.1).span
        60.0
    """

    model_config = {"frozen": True, "extra": "forbid"}

    min: float = Field(..., description="Lower bound (Celsius)")
    max: float = Field(..., description="Upper bound (Celsius)")
    accuracy: float = Field(default=0.1, description="Accuracy (+/- Celsius)", ge=0)

    @model_validator(mode="after")
    def validate_order(self) -> "TemperatureRange":
        """Enforce min < max."""
        if self.min >= self.max:
            raise ValueError(f"Invalid temperature range: min {self.min} >= max {self.max}")
        return self

    @property
    def span(self) -> float:
        return self.max - self.min


class DetectionSettings(BaseModel):
    """Detection sensitivity parameters shared with consumers of the controller."""

    model_config = {"frozen": True, "extra": "forbid"}

    sensitivity: float = Field(default=0.5, description="Sensitivity (0-1)", ge=0, le=1)
    min_anomaly_size: int = Field(default=10, description="Minimum anomaly size (pixels)", ge=0)
    max_anomaly_size: int = Field(default=1000, description="Maximum anomaly size (pixels)", ge=0)
    temperature_threshold: float = Field(default=2.0, description="Temperature delta (Celsius)", ge=0)
    gradient_threshold: float = Field(default=0.5, description="Gradient (Celsius/pixel)", ge=0)
    temporal_window: int = Field(default=10, description="Temporal window (frames)", ge=1)
    background_update_rate: float = Field(
        default=0.01,
        description="Background EMA rate (0-1)",
        ge=0,
        le=1,
    )
    noise_reduction: float = Field(default=0.3, description="Noise reduction (0-1)", ge=0, le=1)


class ThresholdCondition(str, Enum):
    """
    Comparison conditions for standing thresholds.

    Attributes:
        ABOVE: temperature > threshold.
        BELOW: temperature < threshold.
        RANGE: |temperature - threshold| > hysteresis.
    """

    ABOVE = "above"
    BELOW = "below"
    RANGE = "range"


class AlertThreshold(BaseModel):
    """
    Standing threshold evaluated per pixel by the range controller.

    Example:
        >>> AlertThreshold(
        ...     name="Hot Spot",
        ...     temperature=28.0,
        ...     condition=ThresholdCondition.ABOVE,
        ...     hysteresis=1.0,
        ...     priority=AlertPriority.MEDIUM,
        ...     color="#ff4000",
        ... )
    """

    model_config = {"frozen": True, "extra": "forbid"}

    name: str = Field(..., description="Unique threshold name", min_length=1)
    temperature: float = Field(..., description="Threshold temperature (Celsius)")
    condition: ThresholdCondition = Field(..., description="Comparison condition")
    hysteresis: float = Field(default=1.0, description="Dead-band (Celsius)", ge=0)
    priority: AlertPriority = Field(default=AlertPriority.MEDIUM, description="Alert priority")
    enabled: bool = Field(default=True, description="Whether the threshold is evaluated")
    color: str = Field(default="#808080", description="Display color")


class ProfileCategory(str, Enum):
    """Profile grouping."""

    PARANORMAL = "paranormal"
    INDUSTRIAL = "industrial"
    MEDICAL = "medical"
    ENVIRONMENTAL = "environmental"
    CUSTOM = "custom"


class TemperatureProfile(BaseModel):
    """
    Named, atomically-swappable bundle of range, settings and thresholds.

    Attributes:
        id: Unique profile identifier.
        name: Human-readable name.
        description: Profile description.
        category: Profile grouping.
        recommended: Whether the profile is a recommended default.
        temperature_range: Range applied with the profile.
        detection_settings: Settings applied with the profile.
        alert_thresholds: Thresholds applied with the profile.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    id: str = Field(..., description="Unique profile identifier", min_length=1)
    name: str = Field(..., description="Human-readable name", min_length=1)
    description: str = Field(default="", description="Profile description")
    category: ProfileCategory = Field(default=ProfileCategory.CUSTOM, description="Profile grouping")
    recommended: bool = Field(default=False, description="Recommended default")
    temperature_range: TemperatureRange
    detection_settings: DetectionSettings = Field(default_factory=DetectionSettings)
    alert_thresholds: List[AlertThreshold] = Field(default_factory=list)


class AutoRangeSettings(BaseModel):
    """
    Auto-ranging adaptation policy.

    Attributes:
        enabled: Whether auto-ranging runs.
        adaptation_rate: Smoothing factor toward the computed bounds (0-1).
        percentile: Percentile trimmed from each tail, strictly in (1, 50).
        margin: Padding added outside the trimmed bounds (Celsius).
        update_interval: Seconds between adaptation steps.
        min_range: Minimum width of the adapted range (Celsius).
        max_range: Maximum width and per-step edge movement (Celsius).
    """

    model_config = {"frozen": True, "extra": "forbid"}

    enabled: bool = Field(default=False)
    adaptation_rate: float = Field(default=0.1, ge=0, le=1)
    percentile: float = Field(default=5.0, gt=1, lt=50)
    margin: float = Field(default=5.0, ge=0)
    update_interval: float = Field(default=5.0, gt=0)
    min_range: float = Field(default=10.0, gt=0)
    max_range: float = Field(default=200.0, gt=0)

    @model_validator(mode="after")
    def validate_bounds(self) -> "AutoRangeSettings":
        """Enforce min_range <= max_range."""
        if self.min_range > self.max_range:
            raise ValueError(
                f"min_range ({self.min_range}) must be <= max_range ({self.max_range})"
            )
        return self


class IsothermStyle(str, Enum):
    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"


class IsothermConfig(BaseModel):
    """A single line of constant temperature."""

    model_config = {"frozen": True, "extra": "forbid"}

    id: str = Field(default_factory=lambda: f"custom_{uuid4().hex[:8]}")
    temperature: float
    color: str
    thickness: int = Field(default=1, ge=1)
    style: IsothermStyle = IsothermStyle.SOLID
    visible: bool = True
    label: Optional[str] = None


class IsothermSettings(BaseModel):
    """Isotherm configuration; lines are regenerated when range or spacing change."""

    model_config = {"frozen": True, "extra": "forbid"}

    enabled: bool = False
    isotherms: List[IsothermConfig] = Field(default_factory=list)
    auto_generate: bool = True
    spacing: float = Field(default=5.0, gt=0)
    show_labels: bool = True


class EnvironmentalContext(BaseModel):
    """Ambient conditions used for one-shot detection adjustment."""

    model_config = {"frozen": True, "extra": "forbid"}

    room_temp: float = Field(..., description="Ambient temperature (Celsius)")
    relative_humidity: Optional[float] = Field(default=None, ge=0, le=100)
    airflow: Optional[float] = Field(default=None, ge=0)
    nearby_heat_sources: List[str] = Field(default_factory=list)
    time_of_day: str = ""
    seasonal_factor: float = 1.0


class TemperatureAlert(BaseModel):
    """
    Lightweight alert for one pixel violating a standing threshold.

    Attributes:
        id: Unique alert identifier.
        threshold_name: Name of the violated threshold.
        priority: Threshold priority.
        message: Human-readable description.
        temperature: Pixel temperature.
        threshold: Threshold temperature.
        position: Pixel coordinate.
        timestamp: Frame timestamp in milliseconds.
        frame_number: Frame counter.
        suggested_action: Operator guidance.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    id: str = Field(default_factory=lambda: f"temp_alert_{uuid4().hex}")
    threshold_name: str
    priority: AlertPriority
    message: str
    temperature: float
    threshold: float
    position: AlertLocation
    timestamp: int = Field(..., ge=0)
    frame_number: int = Field(..., ge=0)
    suggested_action: str = ""


class TemperatureStatistics(BaseModel):
    """Summary statistics of the controller's sample window."""

    model_config = {"frozen": True, "extra": "forbid"}

    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    std_dev: float = 0.0
    sample_count: int = 0
