"""
Built-in temperature profiles and default controller state.

Each profile bundles a working range, detection settings and standing
thresholds for one kind of survey. Profiles loaded from configuration are
merged on top of these by id.
"""

from typing import Dict, List

from thermosentry.models.alerts import AlertPriority
from thermosentry.models.ranging import (
    AlertThreshold,
    DetectionSettings,
    ProfileCategory,
    TemperatureProfile,
    TemperatureRange,
    ThresholdCondition,
)


DEFAULT_RANGE = TemperatureRange(min=-10.0, max=50.0, accuracy=0.1)

DEFAULT_DETECTION_SETTINGS = DetectionSettings()

DEFAULT_THRESHOLDS: List[AlertThreshold] = [
    AlertThreshold(
        name="Room Temperature Baseline",
        temperature=22.0,
        condition=ThresholdCondition.RANGE,
        hysteresis=3.0,
        priority=AlertPriority.LOW,
        enabled=False,
        color="#808080",
    ),
    AlertThreshold(
        name="Cold Anomaly",
        temperature=18.0,
        condition=ThresholdCondition.BELOW,
        hysteresis=1.0,
        priority=AlertPriority.MEDIUM,
        color="#0080ff",
    ),
    AlertThreshold(
        name="Hot Anomaly",
        temperature=28.0,
        condition=ThresholdCondition.ABOVE,
        hysteresis=1.0,
        priority=AlertPriority.MEDIUM,
        color="#ff4000",
    ),
]


BUILTIN_PROFILES: List[TemperatureProfile] = [
    TemperatureProfile(
        id="paranormal_standard",
        name="Paranormal - Standard",
        description="Standard temperature range for paranormal investigations",
        category=ProfileCategory.PARANORMAL,
        recommended=True,
        temperature_range=TemperatureRange(min=10.0, max=40.0, accuracy=0.1),
        detection_settings=DetectionSettings(
            sensitivity=0.6,
            min_anomaly_size=5,
            max_anomaly_size=500,
            temperature_threshold=2.0,
            gradient_threshold=0.3,
            temporal_window=15,
            background_update_rate=0.01,
            noise_reduction=0.2,
        ),
        alert_thresholds=[
            AlertThreshold(
                name="Cold Spot",
                temperature=18.0,
                condition=ThresholdCondition.BELOW,
                hysteresis=1.0,
                priority=AlertPriority.MEDIUM,
                color="#0080ff",
            ),
            AlertThreshold(
                name="Hot Spot",
                temperature=28.0,
                condition=ThresholdCondition.ABOVE,
                hysteresis=1.0,
                priority=AlertPriority.MEDIUM,
                color="#ff4000",
            ),
        ],
    ),
    TemperatureProfile(
        id="paranormal_sensitive",
        name="Paranormal - High Sensitivity",
        description="High sensitivity for detecting subtle temperature changes",
        category=ProfileCategory.PARANORMAL,
        temperature_range=TemperatureRange(min=15.0, max=30.0, accuracy=0.05),
        detection_settings=DetectionSettings(
            sensitivity=0.9,
            min_anomaly_size=2,
            max_anomaly_size=200,
            temperature_threshold=0.5,
            gradient_threshold=0.1,
            temporal_window=20,
            background_update_rate=0.005,
            noise_reduction=0.1,
        ),
        alert_thresholds=[
            AlertThreshold(
                name="Minor Cold",
                temperature=21.0,
                condition=ThresholdCondition.BELOW,
                hysteresis=0.5,
                priority=AlertPriority.LOW,
                color="#4080ff",
            ),
            AlertThreshold(
                name="Minor Hot",
                temperature=24.0,
                condition=ThresholdCondition.ABOVE,
                hysteresis=0.5,
                priority=AlertPriority.LOW,
                color="#ff8040",
            ),
        ],
    ),
    TemperatureProfile(
        id="paranormal_extreme",
        name="Paranormal - Extreme Events",
        description="Detection of extreme temperature anomalies only",
        category=ProfileCategory.PARANORMAL,
        temperature_range=TemperatureRange(min=-20.0, max=80.0, accuracy=0.5),
        detection_settings=DetectionSettings(
            sensitivity=0.3,
            min_anomaly_size=20,
            max_anomaly_size=2000,
            temperature_threshold=10.0,
            gradient_threshold=2.0,
            temporal_window=5,
            background_update_rate=0.02,
            noise_reduction=0.5,
        ),
        alert_thresholds=[
            AlertThreshold(
                name="Extreme Cold",
                temperature=5.0,
                condition=ThresholdCondition.BELOW,
                hysteresis=2.0,
                priority=AlertPriority.HIGH,
                color="#0040ff",
            ),
            AlertThreshold(
                name="Extreme Hot",
                temperature=50.0,
                condition=ThresholdCondition.ABOVE,
                hysteresis=2.0,
                priority=AlertPriority.HIGH,
                color="#ff0040",
            ),
        ],
    ),
    TemperatureProfile(
        id="environmental_monitoring",
        name="Environmental Monitoring",
        description="General environmental temperature monitoring",
        category=ProfileCategory.ENVIRONMENTAL,
        temperature_range=TemperatureRange(min=-10.0, max=60.0, accuracy=0.2),
        detection_settings=DetectionSettings(
            sensitivity=0.4,
            min_anomaly_size=50,
            max_anomaly_size=5000,
            temperature_threshold=5.0,
            gradient_threshold=1.0,
            temporal_window=30,
            background_update_rate=0.05,
            noise_reduction=0.4,
        ),
        alert_thresholds=[
            AlertThreshold(
                name="Freeze Warning",
                temperature=0.0,
                condition=ThresholdCondition.BELOW,
                hysteresis=1.0,
                priority=AlertPriority.MEDIUM,
                color="#0080ff",
            ),
            AlertThreshold(
                name="Heat Warning",
                temperature=35.0,
                condition=ThresholdCondition.ABOVE,
                hysteresis=2.0,
                priority=AlertPriority.MEDIUM,
                color="#ff8000",
            ),
        ],
    ),
    TemperatureProfile(
        id="industrial_safety",
        name="Industrial Safety",
        description="Industrial equipment monitoring and safety",
        category=ProfileCategory.INDUSTRIAL,
        temperature_range=TemperatureRange(min=-40.0, max=150.0, accuracy=1.0),
        detection_settings=DetectionSettings(
            sensitivity=0.2,
            min_anomaly_size=100,
            max_anomaly_size=10000,
            temperature_threshold=15.0,
            gradient_threshold=5.0,
            temporal_window=60,
            background_update_rate=0.1,
            noise_reduction=0.6,
        ),
        alert_thresholds=[
            AlertThreshold(
                name="Equipment Cold",
                temperature=-20.0,
                condition=ThresholdCondition.BELOW,
                hysteresis=5.0,
                priority=AlertPriority.LOW,
                color="#4040ff",
            ),
            AlertThreshold(
                name="Overheating",
                temperature=80.0,
                condition=ThresholdCondition.ABOVE,
                hysteresis=5.0,
                priority=AlertPriority.CRITICAL,
                color="#ff0000",
            ),
        ],
    ),
]


def builtin_profile_map() -> Dict[str, TemperatureProfile]:
    """Built-in profiles keyed by id, in declaration order."""
    return {profile.id: profile for profile in BUILTIN_PROFILES}
