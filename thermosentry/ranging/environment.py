"""
Environmental adjustment of detection settings.

A one-shot, deterministic nudge applied when new ambient context arrives.
Adjustments are always computed from the baseline settings (those in force
before any environmental adjustment), so applying the same context twice
gives the same result.
"""

from typing import Any, Dict, Tuple

from thermosentry.models.ranging import DetectionSettings, EnvironmentalContext

BASELINE_ROOM_TEMP = 22.0
ROOM_TEMP_TOLERANCE = 5.0
ROOM_TEMP_GAIN = 0.2
HIGH_HUMIDITY = 70.0
HUMIDITY_NOISE_STEP = 0.1
MAX_NOISE_REDUCTION = 0.8
HIGH_AIRFLOW = 0.5
AIRFLOW_WINDOW_STEP = 5
MAX_TEMPORAL_WINDOW = 30


def adjust_for_environment(
    baseline: DetectionSettings,
    context: EnvironmentalContext,
) -> Tuple[DetectionSettings, Dict[str, Any]]:
    """
    Apply ambient conditions to detection settings.

    Rules:
        - Room temperature more than 5 °C from 22 °C raises
          ``temperature_threshold`` by 0.2 per degree of deviation.
        - Relative humidity above 70 % raises ``noise_reduction`` by 0.1,
          capped at 0.8 (never lowered).
        - Airflow above 0.5 widens ``temporal_window`` by 5 frames, capped
          at 30 (never narrowed).

    Args:
        baseline: Settings before environmental adjustment.
        context: Ambient conditions.

    Returns:
        Tuple of the adjusted settings and the changed fields.
    """
    adjustments: Dict[str, Any] = {}

    room_delta = abs(context.room_temp - BASELINE_ROOM_TEMP)
    if room_delta > ROOM_TEMP_TOLERANCE:
        adjustments["temperature_threshold"] = (
            baseline.temperature_threshold + room_delta * ROOM_TEMP_GAIN
        )

    if context.relative_humidity is not None and context.relative_humidity > HIGH_HUMIDITY:
        adjustments["noise_reduction"] = max(
            baseline.noise_reduction,
            min(MAX_NOISE_REDUCTION, baseline.noise_reduction + HUMIDITY_NOISE_STEP),
        )

    if context.airflow is not None and context.airflow > HIGH_AIRFLOW:
        adjustments["temporal_window"] = max(
            baseline.temporal_window,
            min(MAX_TEMPORAL_WINDOW, baseline.temporal_window + AIRFLOW_WINDOW_STEP),
        )

    if not adjustments:
        return baseline, adjustments
    return baseline.model_copy(update=adjustments), adjustments
