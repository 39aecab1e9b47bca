"""
Thermal frame models.

This module defines the sensor sample consumed by the alert engine and the
range controller, plus the small geometric types shared by both.

Models:
    ThermalFrame: One calibrated temperature grid with summary statistics
    TemperaturePoint: A flagged pixel with its temperature
    Region: Axis-aligned pixel rectangle (rule restriction or alert bounds)
"""

from typing import List, Sequence, Tuple

import numpy as np
from pydantic import BaseModel, Field, model_validator

from thermosentry.exceptions import DataError


class TemperaturePoint(BaseModel):
    """
    A single pixel flagged by a detector.

    Attributes:
        x: Column index.
        y: Row index.
        temperature: Temperature at the pixel in Celsius.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    x: int = Field(..., description="Column index", ge=0)
    y: int = Field(..., description="Row index", ge=0)
    temperature: float = Field(..., description="Temperature in Celsius")


class Region(BaseModel):
    """
    Axis-aligned pixel rectangle, inclusive on all edges.

    Used as a rule's spatial restriction and as the bounding polygon of an
    alert's cluster.

    Example:
        >>> region = Region(x_min=10, y_min=10, x_max=20, y_max=15)
        >>> region.contains(12, 14)
        True
    """

    model_config = {"frozen": True, "extra": "forbid"}

    x_min: int = Field(..., description="Left edge (inclusive)")
    y_min: int = Field(..., description="Top edge (inclusive)")
    x_max: int = Field(..., description="Right edge (inclusive)")
    y_max: int = Field(..., description="Bottom edge (inclusive)")

    @model_validator(mode="after")
    def validate_bounds(self) -> "Region":
        """Reject inverted rectangles."""
        if self.x_max < self.x_min or self.y_max < self.y_min:
            raise ValueError(
                f"Region is inverted: ({self.x_min},{self.y_min})-({self.x_max},{self.y_max})"
            )
        return self

    @property
    def width(self) -> int:
        return self.x_max - self.x_min + 1

    @property
    def height(self) -> int:
        return self.y_max - self.y_min + 1

    @property
    def corners(self) -> List[Tuple[int, int]]:
        """Polygon corners, clockwise from the top-left."""
        return [
            (self.x_min, self.y_min),
            (self.x_max, self.y_min),
            (self.x_max, self.y_max),
            (self.x_min, self.y_max),
        ]

    def contains(self, x: float, y: float) -> bool:
        """Check whether a pixel coordinate lies inside the rectangle."""
        return self.x_min <= x <= self.x_max and self.y_min <= y <= self.y_max


class ThermalFrame(BaseModel):
    """
    One calibrated sensor sample.

    Frames are immutable once produced. The caller owns them and passes them
    by reference into the core for the duration of one processing call.

    Attributes:
        timestamp: Monotonic timestamp in milliseconds.
        frame_number: Monotonically increasing frame counter.
        width: Grid width in pixels.
        height: Grid height in pixels.
        temperature_data: Row-major Celsius values, ``width * height`` long.
        min_temp: Precomputed minimum temperature.
        max_temp: Precomputed maximum temperature.
        avg_temp: Precomputed mean temperature.

    Example:
        >>> frame = ThermalFrame.from_values(
        ...     [20.0] * 12, width=4, height=3, timestamp=0, frame_number=0
        ... )
        >>> frame.avg_temp
        20.0
    """

    model_config = {"frozen": True, "extra": "forbid"}

    timestamp: int = Field(..., description="Monotonic timestamp (ms)", ge=0)
    frame_number: int = Field(..., description="Frame counter", ge=0)
    width: int = Field(..., description="Grid width in pixels", ge=1)
    height: int = Field(..., description="Grid height in pixels", ge=1)
    temperature_data: List[float] = Field(
        ...,
        description="Row-major temperature values in Celsius",
    )
    min_temp: float = Field(..., description="Minimum temperature")
    max_temp: float = Field(..., description="Maximum temperature")
    avg_temp: float = Field(..., description="Mean temperature")

    @classmethod
    def from_values(
        cls,
        values: Sequence[float],
        width: int,
        height: int,
        timestamp: int,
        frame_number: int,
    ) -> "ThermalFrame":
        """
        Build a frame from raw values, computing the summary statistics.

        Args:
            values: Row-major temperatures (any sequence or numpy array).
            width: Grid width.
            height: Grid height.
            timestamp: Monotonic timestamp in milliseconds.
            frame_number: Frame counter.

        Returns:
            ThermalFrame: The new frame.
        """
        data = np.asarray(values, dtype=float).ravel()
        if data.size == 0:
            raise DataError("Frame has no temperature data", frame_number=frame_number)

        return cls(
            timestamp=timestamp,
            frame_number=frame_number,
            width=width,
            height=height,
            temperature_data=data.tolist(),
            min_temp=float(data.min()),
            max_temp=float(data.max()),
            avg_temp=float(data.mean()),
        )

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def is_consistent(self) -> bool:
        """Check that the data length matches the declared dimensions."""
        return len(self.temperature_data) == self.pixel_count

    def check_dimensions(self) -> None:
        """
        Validate the data length against the declared dimensions.

        Raises:
            DataError: If ``len(temperature_data) != width * height``.
        """
        if not self.is_consistent:
            raise DataError(
                f"Frame {self.frame_number} has {len(self.temperature_data)} values, "
                f"expected {self.pixel_count} ({self.width}x{self.height})",
                frame_number=self.frame_number,
                expected=self.pixel_count,
                actual=len(self.temperature_data),
            )

    def as_array(self) -> np.ndarray:
        """Return the temperature data as a flat float array."""
        return np.asarray(self.temperature_data, dtype=float)
