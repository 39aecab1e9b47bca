"""
Temperature statistics helpers.

Components:
    frame_stats: Vectorised per-frame statistics (mean, std, median, percentiles)
    rolling: Bounded rolling sample windows
"""

from thermosentry.metrics.frame_stats import (
    FrameStatistics,
    compute_statistics,
    population_std,
    trimmed_bounds,
    upper_median,
)
from thermosentry.metrics.rolling import SampleWindow

__all__ = [
    "FrameStatistics",
    "compute_statistics",
    "population_std",
    "trimmed_bounds",
    "upper_median",
    "SampleWindow",
]
