"""
Anomaly detectors and the detector registry.

Detectors are near-stateless evaluators over one frame plus one rule. The
engine looks detectors up by rule type in a ``DetectorRegistry``, so new
rule types are supported by registering a detector rather than by editing
the engine's dispatch loop.

Key Features:
    - Threshold detection (high / low) with spatial clustering
    - Statistical (z-score) detection with a zero-variance guard
    - Release-level regions for hysteresis re-arming
    - Stub detectors for rapid-change and pattern rules

Example:
    >>> registry = create_default_registry()
    >>> detector = registry.get(rule.type)
    >>> for detection in detector.detect(frame, rule):
    ...     print(detection.message)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import structlog

from thermosentry.detection.clustering import Cluster, SpatialClusterer, single_cluster
from thermosentry.exceptions import EvaluationError
from thermosentry.metrics.frame_stats import population_std
from thermosentry.models.alerts import AlertRule, ThermalAlertType
from thermosentry.models.frame import Region, TemperaturePoint, ThermalFrame

logger = structlog.get_logger(__name__)


# Default clustering radii (pixels)
DEFAULT_TEMPERATURE_RADIUS = 10.0
DEFAULT_ANOMALY_RADIUS = 15.0


@dataclass
class Detection:
    """
    A candidate alert produced by a detector, before gating.

    Attributes:
        cluster: The flagged pixels.
        temperature: Representative temperature for the alert.
        message: Human-readable description.
        metadata: Diagnostic fields copied into the alert.
    """

    cluster: Cluster
    temperature: float
    message: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def centroid(self):
        return self.cluster.centroid

    @property
    def region(self) -> Region:
        return self.cluster.bounds


def flag_pixels(
    frame: ThermalFrame,
    mask: np.ndarray,
    data: np.ndarray,
    region: Optional[Region] = None,
) -> List[TemperaturePoint]:
    """
    Convert a boolean pixel mask into flagged points.

    Coordinates are derived from the frame's explicit width. Pixels outside
    ``region`` are dropped.
    """
    indices = np.flatnonzero(mask)
    if indices.size == 0:
        return []

    xs = indices % frame.width
    ys = indices // frame.width

    if region is not None:
        inside = (
            (xs >= region.x_min) & (xs <= region.x_max)
            & (ys >= region.y_min) & (ys <= region.y_max)
        )
        indices, xs, ys = indices[inside], xs[inside], ys[inside]

    return [
        TemperaturePoint(x=int(x), y=int(y), temperature=float(data[i]))
        for i, x, y in zip(indices, xs, ys)
    ]


class Detector(ABC):
    """
    Base class for rule-type detectors.

    Subclasses implement ``flag`` (which pixels violate a level) and
    ``describe`` (how a cluster becomes a detection). The base class applies
    the rule's minimum pixel count and spatial grouping.

    Attributes:
        clusterer: Clusterer used when the rule enables spatial filtering.
    """

    def __init__(self, radius: float = DEFAULT_TEMPERATURE_RADIUS) -> None:
        self.clusterer = SpatialClusterer(radius=radius)

    @abstractmethod
    def flag(
        self,
        frame: ThermalFrame,
        rule: AlertRule,
        threshold: float,
    ) -> List[TemperaturePoint]:
        """Return the pixels that violate ``threshold`` for this rule."""

    @abstractmethod
    def describe(self, cluster: Cluster, frame: ThermalFrame, rule: AlertRule) -> Detection:
        """Turn one cluster into a detection."""

    @abstractmethod
    def release_threshold(self, rule: AlertRule) -> float:
        """Level the metric must cross back past before a latch re-arms."""

    def group(self, points: List[TemperaturePoint], rule: AlertRule) -> List[Cluster]:
        """Cluster points, or keep them as one group when spatial filtering is off."""
        if rule.conditions.spatial_filtering:
            return self.clusterer.cluster(points)
        return single_cluster(points)

    def detect(self, frame: ThermalFrame, rule: AlertRule) -> List[Detection]:
        """
        Evaluate a rule against a frame.

        Args:
            frame: The frame to scan.
            rule: The rule to apply.

        Returns:
            List[Detection]: One detection per cluster, empty when the flagged
            set is smaller than the rule's minimum pixel count.
        """
        points = self.flag(frame, rule, rule.threshold)
        if len(points) < rule.conditions.min_pixel_count:
            return []

        return [self.describe(cluster, frame, rule) for cluster in self.group(points, rule)]

    def release_regions(self, frame: ThermalFrame, rule: AlertRule) -> List[Region]:
        """
        Regions still beyond the release level.

        Used by the engine to decide which latched locations stay latched.
        """
        points = self.flag(frame, rule, self.release_threshold(rule))
        return [cluster.bounds for cluster in self.group(points, rule)]


class HighTemperatureDetector(Detector):
    """Flags pixels at or above the rule threshold."""

    def flag(self, frame, rule, threshold):
        data = frame.as_array()
        return flag_pixels(frame, data >= threshold, data, rule.region)

    def describe(self, cluster, frame, rule):
        max_temp = cluster.max_temperature
        return Detection(
            cluster=cluster,
            temperature=max_temp,
            message=f"High temperature detected: {max_temp:.1f}°C",
            metadata={
                "frame_number": frame.frame_number,
                "pixel_count": cluster.size,
                "average_temperature": cluster.mean_temperature,
                "threshold": rule.threshold,
            },
        )

    def release_threshold(self, rule):
        return rule.threshold - rule.hysteresis


class LowTemperatureDetector(Detector):
    """Flags pixels at or below the rule threshold."""

    def flag(self, frame, rule, threshold):
        data = frame.as_array()
        return flag_pixels(frame, data <= threshold, data, rule.region)

    def describe(self, cluster, frame, rule):
        min_temp = cluster.min_temperature
        return Detection(
            cluster=cluster,
            temperature=min_temp,
            message=f"Low temperature detected: {min_temp:.1f}°C",
            metadata={
                "frame_number": frame.frame_number,
                "pixel_count": cluster.size,
                "average_temperature": cluster.mean_temperature,
                "threshold": rule.threshold,
            },
        )

    def release_threshold(self, rule):
        return rule.threshold + rule.hysteresis


class StatisticalAnomalyDetector(Detector):
    """
    Flags pixels whose distance from the frame mean is at least
    ``threshold`` standard deviations.

    The frame mean is the frame's precomputed ``avg_temp``; the standard
    deviation is the population deviation over all pixels around it. A
    zero deviation means no pixel can be anomalous.
    """

    def __init__(self, radius: float = DEFAULT_ANOMALY_RADIUS) -> None:
        super().__init__(radius=radius)

    def flag(self, frame, rule, threshold):
        data = frame.as_array()
        mean = frame.avg_temp
        std_dev = population_std(data, mean)
        if std_dev == 0:
            return []

        z_scores = np.abs(data - mean) / std_dev
        return flag_pixels(frame, z_scores >= threshold, data, rule.region)

    def describe(self, cluster, frame, rule):
        mean = frame.avg_temp
        std_dev = population_std(frame.as_array(), mean)
        cluster_mean = cluster.mean_temperature
        z_score = (cluster_mean - mean) / std_dev

        return Detection(
            cluster=cluster,
            temperature=cluster_mean,
            message=f"Temperature anomaly detected: {cluster_mean:.1f}°C ({z_score:.1f}σ)",
            metadata={
                "frame_number": frame.frame_number,
                "pixel_count": cluster.size,
                "average_temperature": cluster_mean,
                "standard_deviation": std_dev,
                "z_score": z_score,
                "threshold": rule.threshold,
            },
        )

    def release_threshold(self, rule):
        return max(rule.threshold - rule.hysteresis, 0.0)


class NullDetector(Detector):
    """
    Placeholder for rule types that need more than one frame.

    Rapid-change detection needs a history of prior frames and pattern
    detection needs shape or gradient analysis. Register a real detector for
    the type to enable them.
    """

    def flag(self, frame, rule, threshold):
        return []

    def describe(self, cluster, frame, rule):
        raise EvaluationError(f"{type(self).__name__} produces no detections", rule_id=rule.id)

    def release_threshold(self, rule):
        return rule.threshold


class DetectorRegistry:
    """
    Maps rule types to detectors.

    Example:
        >>> registry = DetectorRegistry()
        >>> registry.register(ThermalAlertType.HIGH_TEMPERATURE, HighTemperatureDetector())
        >>> registry.get(ThermalAlertType.HIGH_TEMPERATURE)
    """

    def __init__(self) -> None:
        self._detectors: Dict[ThermalAlertType, Detector] = {}

    def register(self, rule_type: ThermalAlertType, detector: Detector) -> None:
        """Register (or replace) the detector for a rule type."""
        self._detectors[rule_type] = detector
        logger.debug(
            "detector_registered",
            rule_type=rule_type.value,
            detector=type(detector).__name__,
        )

    def get(self, rule_type: ThermalAlertType) -> Detector:
        """
        Look up the detector for a rule type.

        Raises:
            EvaluationError: If no detector is registered for the type.
        """
        detector = self._detectors.get(rule_type)
        if detector is None:
            raise EvaluationError(f"No detector registered for rule type {rule_type.value}")
        return detector

    def __contains__(self, rule_type: ThermalAlertType) -> bool:
        return rule_type in self._detectors


def create_default_registry(
    temperature_radius: float = DEFAULT_TEMPERATURE_RADIUS,
    anomaly_radius: float = DEFAULT_ANOMALY_RADIUS,
) -> DetectorRegistry:
    """
    Build a registry with a detector for every built-in rule type.

    Args:
        temperature_radius: Clustering radius for high/low temperature rules.
        anomaly_radius: Clustering radius for anomaly rules.

    Returns:
        DetectorRegistry: The populated registry.
    """
    registry = DetectorRegistry()
    registry.register(
        ThermalAlertType.HIGH_TEMPERATURE,
        HighTemperatureDetector(radius=temperature_radius),
    )
    registry.register(
        ThermalAlertType.LOW_TEMPERATURE,
        LowTemperatureDetector(radius=temperature_radius),
    )
    registry.register(
        ThermalAlertType.ANOMALY,
        StatisticalAnomalyDetector(radius=anomaly_radius),
    )
    registry.register(ThermalAlertType.RAPID_CHANGE, NullDetector())
    registry.register(ThermalAlertType.PATTERN, NullDetector())
    return registry
