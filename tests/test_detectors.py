"""Tests for the rule-type detectors and the detector registry."""

from __future__ import annotations

import pytest

from thermosentry.detection.detectors import (
    DetectorRegistry,
    HighTemperatureDetector,
    LowTemperatureDetector,
    NullDetector,
    StatisticalAnomalyDetector,
    create_default_registry,
)
from thermosentry.exceptions import EvaluationError
from thermosentry.models.alerts import RuleConditions, ThermalAlertType
from thermosentry.models.frame import Region

from conftest import add_patch, block, hot_frame, make_frame, make_grid, make_rule


class TestHighTemperatureDetector:
    def test_twelve_pixel_cluster(self):
        """One compact cluster yields one detection at its peak."""
        detections = HighTemperatureDetector().detect(hot_frame(12), make_rule())

        assert len(detections) == 1
        detection = detections[0]
        assert detection.temperature == 85.0
        assert detection.metadata["pixel_count"] == 12
        assert detection.metadata["threshold"] == 80.0
        assert detection.message == "High temperature detected: 85.0°C"

    def test_below_min_pixel_count(self):
        assert HighTemperatureDetector().detect(hot_frame(5), make_rule()) == []

    def test_threshold_is_inclusive(self):
        detections = HighTemperatureDetector().detect(hot_frame(12, temperature=80.0), make_rule())
        assert len(detections) == 1

    def test_min_pixel_count_applies_to_whole_frame(self):
        """Two small clusters together satisfy the pixel count."""
        grid = add_patch(make_grid(), block(2, 2, 3, 2), 90.0)
        grid = add_patch(grid, block(25, 18, 3, 2), 90.0)
        detections = HighTemperatureDetector().detect(make_frame(grid), make_rule())

        assert len(detections) == 2
        assert [d.metadata["pixel_count"] for d in detections] == [6, 6]

    def test_spatial_filtering_disabled(self):
        grid = add_patch(make_grid(), block(2, 2, 3, 2), 90.0)
        grid = add_patch(grid, block(25, 18, 3, 2), 90.0)
        rule = make_rule(conditions=RuleConditions(min_pixel_count=10, spatial_filtering=False))
        detections = HighTemperatureDetector().detect(make_frame(grid), rule)

        assert len(detections) == 1
        assert detections[0].metadata["pixel_count"] == 12

    def test_region_restriction(self):
        """Pixels outside the rule region are ignored."""
        rule = make_rule(region=Region(x_min=20, y_min=0, x_max=31, y_max=23))
        assert HighTemperatureDetector().detect(hot_frame(12), rule) == []

    def test_coordinates_use_frame_width(self):
        """Non-square frames map indices with the declared width."""
        grid = add_patch(make_grid(width=40, height=10), block(30, 5, 2, 1), 90.0)
        rule = make_rule(conditions=RuleConditions(min_pixel_count=1))
        detections = HighTemperatureDetector().detect(make_frame(grid), rule)

        assert len(detections) == 1
        assert detections[0].centroid == (30.5, 5.0)

    def test_release_regions(self):
        """Pixels between the release level and the threshold keep a region."""
        rule = make_rule(hysteresis=5.0)
        detector = HighTemperatureDetector()
        cooling = hot_frame(12, temperature=77.0)

        assert detector.detect(cooling, rule) == []
        regions = detector.release_regions(cooling, rule)
        assert len(regions) == 1
        assert regions[0].contains(11, 11)

        assert detector.release_regions(hot_frame(12, temperature=70.0), rule) == []


class TestLowTemperatureDetector:
    def test_cold_patch(self):
        grid = add_patch(make_grid(), block(5, 5, 2, 2), 5.0)
        rule = make_rule(
            type=ThermalAlertType.LOW_TEMPERATURE,
            threshold=10.0,
            conditions=RuleConditions(min_pixel_count=4),
        )
        detections = LowTemperatureDetector().detect(make_frame(grid), rule)

        assert len(detections) == 1
        assert detections[0].temperature == 5.0
        assert detections[0].message == "Low temperature detected: 5.0°C"

    def test_release_threshold_is_above(self):
        rule = make_rule(type=ThermalAlertType.LOW_TEMPERATURE, threshold=10.0, hysteresis=2.0)
        assert LowTemperatureDetector().release_threshold(rule) == 12.0


class TestStatisticalAnomalyDetector:
    def anomaly_rule(self, **overrides):
        data = dict(
            type=ThermalAlertType.ANOMALY,
            threshold=3.0,
            conditions=RuleConditions(min_pixel_count=1),
        )
        data.update(overrides)
        return make_rule("anomaly", **data)

    def test_flags_outlier_block(self):
        grid = add_patch(make_grid(), block(10, 10, 3, 3), 60.0)
        detections = StatisticalAnomalyDetector().detect(make_frame(grid), self.anomaly_rule())

        assert len(detections) == 1
        detection = detections[0]
        assert detection.metadata["pixel_count"] == 9
        assert detection.temperature == pytest.approx(60.0)
        assert detection.metadata["z_score"] > 3.0
        assert detection.metadata["standard_deviation"] > 0
        assert "anomaly detected" in detection.message

    def test_uniform_frame_has_no_anomalies(self):
        """A zero standard deviation never produces detections."""
        detector = StatisticalAnomalyDetector()
        assert detector.detect(make_frame(make_grid()), self.anomaly_rule()) == []

    def test_release_threshold_not_negative(self):
        rule = self.anomaly_rule(threshold=1.0, hysteresis=2.0)
        assert StatisticalAnomalyDetector().release_threshold(rule) == 0.0


class TestDetectorRegistry:
    def test_default_registry_covers_every_type(self):
        registry = create_default_registry()
        for rule_type in ThermalAlertType:
            assert rule_type in registry

        assert isinstance(registry.get(ThermalAlertType.RAPID_CHANGE), NullDetector)
        assert isinstance(registry.get(ThermalAlertType.PATTERN), NullDetector)

    def test_missing_detector(self):
        with pytest.raises(EvaluationError):
            DetectorRegistry().get(ThermalAlertType.HIGH_TEMPERATURE)

    def test_null_detector_detects_nothing(self):
        rule = make_rule(type=ThermalAlertType.RAPID_CHANGE)
        assert NullDetector().detect(hot_frame(12), rule) == []

    def test_radius_is_configurable(self):
        registry = create_default_registry(temperature_radius=3.0, anomaly_radius=7.0)
        assert registry.get(ThermalAlertType.HIGH_TEMPERATURE).clusterer.radius == 3.0
        assert registry.get(ThermalAlertType.ANOMALY).clusterer.radius == 7.0
