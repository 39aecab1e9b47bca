"""
Auto-ranging step.

``compute_auto_range`` is a pure function: given the recent samples, the
current range and the policy, it returns the next range. The controller owns
scheduling and state; this module only owns the arithmetic.

Algorithm:
    1. Take the trailing ``window`` samples and sort them.
    2. Read the symmetric percentile bounds and pad them by ``margin``.
    3. Blend each edge toward the padded bound by ``adaptation_rate``.
    4. Limit each edge's movement to ``max_range`` per step, in either direction.
    5. Resize to ``max_range`` if wider, or to ``min_range`` if narrower,
       without breaking the step limit.

Example:
    >>> compute_auto_range(
    ...     samples=[10 + 20 * i / 99 for i in range(100)],
    ...     current=TemperatureRange(min=-10, max=50),
    ...     settings=AutoRangeSettings(percentile=5, margin=5, adaptation_rate=0.1),
    ... )
    TemperatureRange(min=-8.39..., max=48.41..., accuracy=0.1)
"""

from typing import Optional, Sequence

from thermosentry.metrics.frame_stats import trimmed_bounds
from thermosentry.models.ranging import AutoRangeSettings, TemperatureRange

DEFAULT_WINDOW = 100
DEFAULT_MIN_SAMPLES = 10


def compute_auto_range(
    samples: Sequence[float],
    current: TemperatureRange,
    settings: AutoRangeSettings,
    window: int = DEFAULT_WINDOW,
    min_samples: int = DEFAULT_MIN_SAMPLES,
) -> Optional[TemperatureRange]:
    """
    Compute one auto-range adaptation step.

    Args:
        samples: Sample history, oldest first.
        current: Range currently in force.
        settings: Auto-range policy.
        window: Number of trailing samples considered.
        min_samples: Samples required before adapting.

    Returns:
        Optional[TemperatureRange]: The adapted range (keeping the current
        accuracy), or None when there are too few samples.
    """
    if len(samples) < min_samples:
        return None

    recent = list(samples)[-window:]
    low, high = trimmed_bounds(recent, settings.percentile)

    target_min = low - settings.margin
    target_max = high + settings.margin

    rate = settings.adaptation_rate
    new_min = current.min * (1 - rate) + target_min * rate
    new_max = current.max * (1 - rate) + target_max * rate

    step = settings.max_range
    new_min = _clamp(new_min, current.min - step, current.min + step)
    new_max = _clamp(new_max, current.max - step, current.max + step)

    width = _clamp(new_max - new_min, settings.min_range, settings.max_range)
    center = (new_min + new_max) / 2

    # Place the resized window as close to center as the step limit allows.
    # When no placement satisfies both, each edge moves a full step toward
    # the target width and later steps converge.
    low_bound = max(current.min - step, current.max - step - width)
    high_bound = min(current.min + step, current.max + step - width)
    if low_bound <= high_bound:
        new_min = _clamp(center - width / 2, low_bound, high_bound)
        new_max = new_min + width
    elif current.span > width:
        new_min, new_max = current.min + step, current.max - step
    else:
        new_min, new_max = current.min - step, current.max + step

    return TemperatureRange(min=new_min, max=new_max, accuracy=current.accuracy)


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)
