"""
Adaptive temperature ranging.

This module owns the working temperature range, detection settings,
standing thresholds and the profiles that bundle them.

Components:
    controller: RangeController holding the shared ranging state
    autorange: Pure auto-range adaptation step
    isotherms: Isotherm generation and coloring
    environment: Ambient adjustment of detection settings
    profiles: Built-in profiles and default state

Example:
    >>> from thermosentry.ranging import RangeController
    >>>
    >>> controller = RangeController()
    >>> controller.apply_profile("industrial_safety")
    >>> alerts = controller.process_frame(frame)
"""

from thermosentry.ranging.controller import RangeController, suggest_action
from thermosentry.ranging.autorange import compute_auto_range
from thermosentry.ranging.isotherms import (
    generate_isotherms,
    isotherm_color,
)
from thermosentry.ranging.environment import adjust_for_environment
from thermosentry.ranging.profiles import (
    BUILTIN_PROFILES,
    DEFAULT_DETECTION_SETTINGS,
    DEFAULT_RANGE,
    DEFAULT_THRESHOLDS,
    builtin_profile_map,
)

__all__ = [
    # Controller
    "RangeController",
    "suggest_action",
    # Algorithms
    "compute_auto_range",
    "generate_isotherms",
    "isotherm_color",
    "adjust_for_environment",
    # Profiles
    "BUILTIN_PROFILES",
    "DEFAULT_DETECTION_SETTINGS",
    "DEFAULT_RANGE",
    "DEFAULT_THRESHOLDS",
    "builtin_profile_map",
]
