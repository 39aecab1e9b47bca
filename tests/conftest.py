"""Shared test fixtures: synthetic thermal frames with hot and cold patches."""

from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np
import pytest

from thermosentry.detection.engine import AlertRuleEngine
from thermosentry.models.alerts import (
    AlertPriority,
    AlertRule,
    RuleConditions,
    ThermalAlertType,
)
from thermosentry.models.frame import ThermalFrame


def make_grid(width: int = 32, height: int = 24, background: float = 20.0) -> np.ndarray:
    """Create a uniform temperature grid (rows x columns)."""
    return np.full((height, width), background, dtype=float)


def add_patch(grid: np.ndarray, pixels: Iterable[Tuple[int, int]],
              temperature: float) -> np.ndarray:
    """Set the given (x, y) pixels to a temperature."""
    result = grid.copy()
    for x, y in pixels:
        result[y, x] = temperature
    return result


def block(x0: int, y0: int, width: int, height: int) -> list[Tuple[int, int]]:
    """Pixel coordinates of a rectangular block."""
    return [(x, y) for y in range(y0, y0 + height) for x in range(x0, x0 + width)]


def make_frame(grid: np.ndarray, timestamp: int = 0, frame_number: int = 0) -> ThermalFrame:
    """Wrap a grid into a ThermalFrame."""
    height, width = grid.shape
    return ThermalFrame.from_values(
        grid.ravel(),
        width=width,
        height=height,
        timestamp=timestamp,
        frame_number=frame_number,
    )


def hot_frame(pixel_count: int = 12, temperature: float = 85.0,
              timestamp: int = 0, frame_number: int = 0) -> ThermalFrame:
    """A 32x24 frame at 20 °C with one compact hot cluster near (10, 10)."""
    pixels = block(10, 10, 4, 4)[:pixel_count]
    return make_frame(add_patch(make_grid(), pixels, temperature),
                      timestamp=timestamp, frame_number=frame_number)


def make_rule(rule_id: str = "hot", **overrides) -> AlertRule:
    """A high-temperature rule with no gating unless overridden."""
    data = dict(
        id=rule_id,
        name=f"Rule {rule_id}",
        type=ThermalAlertType.HIGH_TEMPERATURE,
        threshold=80.0,
        priority=AlertPriority.HIGH,
        hysteresis=0.0,
        min_duration=0,
        cooldown_period=0,
        conditions=RuleConditions(min_pixel_count=10),
    )
    data.update(overrides)
    return AlertRule(**data)


@pytest.fixture
def high_rule() -> AlertRule:
    return make_rule()


@pytest.fixture
def engine(high_rule) -> AlertRuleEngine:
    return AlertRuleEngine(rules=[high_rule])


@pytest.fixture
def empty_engine() -> AlertRuleEngine:
    return AlertRuleEngine(rules=[])
