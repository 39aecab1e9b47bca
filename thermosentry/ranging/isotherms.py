"""
Isotherm generation.

Isotherms are derived, presentational state: one line per ``spacing``
interval inside the active range, colored from blue at the bottom of the
range to red at the top.
"""

import math
from typing import List

from thermosentry.models.ranging import IsothermConfig, IsothermStyle, TemperatureRange

# Hue at the bottom of the range (blue); the top maps to 0 (red).
COLD_HUE = 240.0


def isotherm_color(intensity: float) -> str:
    """
    HSL color for a normalised position in the range.

    Example:
        >>> isotherm_color(0.0)
        'hsl(240, 100%, 50%)'
        >>> isotherm_color(1.0)
        'hsl(0, 100%, 50%)'
    """
    intensity = min(max(intensity, 0.0), 1.0)
    hue = round((1 - intensity) * COLD_HUE, 2)
    return f"hsl({hue:g}, 100%, 50%)"


def format_temperature(temperature: float) -> str:
    """Compact temperature text: ``10`` rather than ``10.0``."""
    return f"{round(temperature, 6) + 0.0:g}"


def generate_isotherms(temperature_range: TemperatureRange, spacing: float) -> List[IsothermConfig]:
    """
    Generate isotherms for every spacing multiple inside a range.

    Args:
        temperature_range: Range to cover (inclusive at both ends).
        spacing: Interval between isotherms in Celsius.

    Returns:
        List[IsothermConfig]: Isotherms from coldest to hottest.

    Example:
        >>> [i.temperature for i in generate_isotherms(TemperatureRange(min=-3, max=12), 5)]
        [0.0, 5.0, 10.0]
    """
    if spacing <= 0:
        raise ValueError(f"spacing must be > 0, got {spacing}")

    low, high = temperature_range.min, temperature_range.max
    span = high - low
    first = math.ceil(low / spacing)

    isotherms = []
    step = 0
    while True:
        temperature = round((first + step) * spacing, 9) + 0.0
        if temperature > high + 1e-9:
            break
        text = format_temperature(temperature)
        isotherms.append(
            IsothermConfig(
                id=f"isotherm_{text}",
                temperature=temperature,
                color=isotherm_color((temperature - low) / span),
                thickness=1,
                style=IsothermStyle.SOLID,
                visible=True,
                label=f"{text}°C",
            )
        )
        step += 1

    return isotherms
