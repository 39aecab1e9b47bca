"""
Per-frame temperature statistics.

Vectorised helpers used by the anomaly detector and the range controller.
All functions accept any sequence of floats or a numpy array.

Classes:
    FrameStatistics: Summary of one set of temperature samples
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np

Samples = Union[Sequence[float], np.ndarray]


@dataclass
class FrameStatistics:
    """
    Summary of one set of temperature samples.

    Attributes:
        count: Number of samples.
        minimum: Smallest sample.
        maximum: Largest sample.
        mean: Arithmetic mean.
        std_dev: Population standard deviation.
    """

    count: int
    minimum: float
    maximum: float
    mean: float
    std_dev: float


def compute_statistics(values: Samples) -> Optional[FrameStatistics]:
    """
    Compute summary statistics for a set of samples.

    Args:
        values: Temperature samples.

    Returns:
        Optional[FrameStatistics]: Summary, or None when there are no samples.

    Example:
        >>> stats = compute_statistics([10.0, 20.0, 30.0])
        >>> stats.mean
        20.0
    """
    data = np.asarray(values, dtype=float)
    if data.size == 0:
        return None

    return FrameStatistics(
        count=int(data.size),
        minimum=float(data.min()),
        maximum=float(data.max()),
        mean=float(data.mean()),
        std_dev=float(data.std()),
    )


def population_std(values: Samples, mean: Optional[float] = None) -> float:
    """
    Population standard deviation (n in the denominator).

    Args:
        values: Temperature samples.
        mean: Pre-computed mean to measure deviations from. Defaults to the
            sample mean.

    Returns:
        float: Standard deviation, 0.0 for an empty input.
    """
    data = np.asarray(values, dtype=float)
    if data.size == 0:
        return 0.0
    if mean is None:
        mean = float(data.mean())
    return float(np.sqrt(np.mean((data - mean) ** 2)))


def upper_median(values: Samples) -> Optional[float]:
    """
    Median taking the upper element for even-length inputs.

    Returns:
        Optional[float]: The element at index ``n // 2`` of the sorted
        samples, or None when there are no samples.
    """
    data = np.sort(np.asarray(values, dtype=float))
    if data.size == 0:
        return None
    return float(data[data.size // 2])


def trimmed_bounds(values: Samples, percentile: float) -> Optional[Tuple[float, float]]:
    """
    Symmetric percentile bounds of a sample set.

    The samples are sorted and the elements at ``floor(n * p)`` and
    ``floor(n * (1 - p))`` (clamped to the last index) are returned, where
    ``p = percentile / 100``.

    Args:
        values: Temperature samples.
        percentile: Percentile trimmed from each tail.

    Returns:
        Optional[Tuple[float, float]]: (low, high), or None for no samples.

    Example:
        >>> trimmed_bounds(list(range(100)), 5)
        (5.0, 95.0)
    """
    data = np.sort(np.asarray(values, dtype=float))
    n = data.size
    if n == 0:
        return None

    fraction = percentile / 100
    low_index = min(int(np.floor(n * fraction)), n - 1)
    high_index = min(int(np.floor(n * (1 - fraction))), n - 1)
    return float(data[low_index]), float(data[high_index])
