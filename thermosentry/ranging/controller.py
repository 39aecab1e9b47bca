"""
Range controller for adaptive temperature ranging.

This module provides the RangeController class which owns the shared
ranging state: the active temperature range, detection settings, standing
thresholds, profiles, auto-range policy, isotherms and the rolling sample
history.

Key Features:
    - Rolling sample and frame windows with implausible-value rejection
    - Background temperature estimate (EMA of per-frame medians)
    - Per-pixel standing threshold evaluation
    - Atomic profile application with provenance tracking
    - Smoothed, bounded auto-ranging on a cooperative tick
    - Isotherm generation and one-shot environmental adjustment

Example:
    >>> controller = RangeController()
    >>> controller.apply_profile("paranormal_standard")
    >>> alerts = controller.process_frame(frame)
    >>> controller.enable_auto_range(adaptation_rate=0.2)
    >>> controller.tick(frame.timestamp)
"""

import threading
from collections import deque
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional
from uuid import uuid4

import numpy as np
import structlog
from pydantic import ValidationError

from thermosentry.config.models import RangingConfig
from thermosentry.events import ListenerRegistry, RangeEvent
from thermosentry.exceptions import ConfigurationError, DataError
from thermosentry.metrics.frame_stats import upper_median
from thermosentry.metrics.rolling import SampleWindow
from thermosentry.models.alerts import AlertLocation
from thermosentry.models.frame import ThermalFrame
from thermosentry.models.ranging import (
    AlertThreshold,
    AutoRangeSettings,
    DetectionSettings,
    EnvironmentalContext,
    IsothermConfig,
    IsothermSettings,
    ProfileCategory,
    TemperatureAlert,
    TemperatureProfile,
    TemperatureRange,
    TemperatureStatistics,
    ThresholdCondition,
)
from thermosentry.ranging.autorange import compute_auto_range
from thermosentry.ranging.environment import adjust_for_environment
from thermosentry.ranging.isotherms import generate_isotherms
from thermosentry.ranging.profiles import (
    builtin_profile_map,
    DEFAULT_DETECTION_SETTINGS,
    DEFAULT_RANGE,
    DEFAULT_THRESHOLDS,
)

logger = structlog.get_logger(__name__)


# Deviation beyond which a threshold alert suggests investigation
SEVERE_DEVIATION = 10.0


def suggest_action(threshold: AlertThreshold, temperature: float) -> str:
    """
    Operator guidance for a threshold violation.

    Example:
        >>> suggest_action(hot_threshold_at_28, 45.0)
        'Check for heat sources or equipment overheating'
    """
    delta = abs(temperature - threshold.temperature)

    if threshold.condition == ThresholdCondition.BELOW and temperature < threshold.temperature:
        if delta > SEVERE_DEVIATION:
            return "Investigate possible equipment malfunction or environmental anomaly"
        return "Monitor for continued cooling trend"

    if threshold.condition == ThresholdCondition.ABOVE and temperature > threshold.temperature:
        if delta > SEVERE_DEVIATION:
            return "Check for heat sources or equipment overheating"
        return "Monitor for continued heating trend"

    return "Monitor temperature trend and investigate if persistent"


def _violation_mask(data: np.ndarray, threshold: AlertThreshold) -> np.ndarray:
    if threshold.condition == ThresholdCondition.ABOVE:
        return data > threshold.temperature
    if threshold.condition == ThresholdCondition.BELOW:
        return data < threshold.temperature
    return np.abs(data - threshold.temperature) > threshold.hysteresis


class RangeController:
    """
    Owns the adaptive ranging state.

    All state is guarded by one re-entrant lock, so a frame, an auto-range
    step and a configuration change never interleave. Listener callbacks are
    invoked after the lock is released.

    Attributes:
        config: Window sizes and sample bounds.
    """

    def __init__(
        self,
        config: Optional[RangingConfig] = None,
        auto_range: Optional[AutoRangeSettings] = None,
        isotherms: Optional[IsothermSettings] = None,
        profiles: Optional[Iterable[TemperatureProfile]] = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            config: Window sizes and sample bounds.
            auto_range: Initial auto-range policy (disabled by default).
            isotherms: Initial isotherm settings.
            profiles: Extra profiles, merged over the built-ins by id.
        """
        self.config = config or RangingConfig()

        self._lock = threading.RLock()
        self._listeners = ListenerRegistry("range_controller")

        self._range: TemperatureRange = DEFAULT_RANGE
        self._settings: DetectionSettings = DEFAULT_DETECTION_SETTINGS
        self._baseline_settings: DetectionSettings = DEFAULT_DETECTION_SETTINGS
        self._thresholds: List[AlertThreshold] = list(DEFAULT_THRESHOLDS)
        self._current_profile: Optional[str] = None
        self._environment: Optional[EnvironmentalContext] = None

        self._auto_range = auto_range or AutoRangeSettings()
        self._last_auto_range_ms: Optional[int] = None

        self._isotherms = isotherms or IsothermSettings()
        if self._isotherms.auto_generate:
            self._isotherms = self._isotherms.model_copy(
                update={"isotherms": generate_isotherms(self._range, self._isotherms.spacing)}
            )

        self._profiles: Dict[str, TemperatureProfile] = builtin_profile_map()
        for profile in profiles or []:
            self._profiles[profile.id] = profile

        self._samples = SampleWindow(max_size=self.config.sample_history)
        self._frames: Deque[ThermalFrame] = deque(maxlen=self.config.frame_history)
        self._background = self.config.initial_background

        logger.info(
            "range_controller_initialized",
            range_min=self._range.min,
            range_max=self._range.max,
            profiles_count=len(self._profiles),
            auto_range_enabled=self._auto_range.enabled,
        )

    # =========================================================================
    # Frame processing
    # =========================================================================

    def process_frame(self, frame: ThermalFrame) -> List[TemperatureAlert]:
        """
        Record a frame and evaluate the standing thresholds.

        Samples outside the plausible bounds are dropped from the history. A
        frame whose data length does not match its dimensions contributes no
        samples, but its thresholds are still evaluated.

        Args:
            frame: The frame to process.

        Returns:
            List[TemperatureAlert]: One alert per violating pixel per enabled
            threshold.
        """
        with self._lock:
            self._frames.append(frame)
            data = frame.as_array()

            try:
                frame.check_dimensions()
            except DataError as e:
                logger.warning(
                    "frame_samples_dropped",
                    frame_number=frame.frame_number,
                    expected=e.expected,
                    actual=e.actual,
                )
            else:
                self._record_samples(data, frame.frame_number)

            alerts = self._check_thresholds(frame, data)

        if alerts:
            self._listeners.emit(RangeEvent.TEMPERATURE_ALERTS, alerts)
        return alerts

    def _record_samples(self, data: np.ndarray, frame_number: int) -> None:
        cfg = self.config

        plausible = data[(data > cfg.plausible_min) & (data < cfg.plausible_max)]
        if plausible.size < data.size:
            logger.debug(
                "implausible_samples_dropped",
                frame_number=frame_number,
                dropped=int(data.size - plausible.size),
            )
        self._samples.extend(plausible.tolist())

        median = upper_median(data[(data > cfg.background_min) & (data < cfg.background_max)])
        if median is not None:
            rate = self._settings.background_update_rate
            self._background = self._background * (1 - rate) + median * rate

    def _check_thresholds(self, frame: ThermalFrame, data: np.ndarray) -> List[TemperatureAlert]:
        alerts: List[TemperatureAlert] = []

        for threshold in self._thresholds:
            if not threshold.enabled:
                continue

            for index in np.flatnonzero(_violation_mask(data, threshold)):
                temperature = float(data[index])
                alerts.append(
                    TemperatureAlert(
                        threshold_name=threshold.name,
                        priority=threshold.priority,
                        message=f"{threshold.name}: {temperature:.1f}°C",
                        temperature=temperature,
                        threshold=threshold.temperature,
                        position=AlertLocation(
                            x=int(index % frame.width),
                            y=int(index // frame.width),
                        ),
                        timestamp=frame.timestamp,
                        frame_number=frame.frame_number,
                        suggested_action=suggest_action(threshold, temperature),
                    )
                )

        return alerts

    # =========================================================================
    # Temperature range
    # =========================================================================

    def _apply_range(self, new_range: TemperatureRange) -> TemperatureRange:
        old_range = self._range
        self._range = new_range
        self._current_profile = None
        if self._isotherms.auto_generate:
            self._regenerate_isotherms()
        return old_range

    def set_temperature_range(
        self,
        minimum: float,
        maximum: float,
        accuracy: Optional[float] = None,
    ) -> TemperatureRange:
        """
        Set the working range manually.

        Clears the active profile association.

        Raises:
            ConfigurationError: If ``minimum >= maximum``; the range is unchanged.
        """
        with self._lock:
            try:
                new_range = TemperatureRange(
                    min=minimum,
                    max=maximum,
                    accuracy=self._range.accuracy if accuracy is None else accuracy,
                )
            except ValidationError as e:
                logger.warning("invalid_temperature_range", min=minimum, max=maximum)
                raise ConfigurationError(f"Invalid temperature range: {e}") from e

            old_range = self._apply_range(new_range)

        logger.info("temperature_range_set", min=new_range.min, max=new_range.max)
        self._listeners.emit(RangeEvent.RANGE_CHANGED, old_range, new_range)
        return new_range

    def get_temperature_range(self) -> TemperatureRange:
        with self._lock:
            return self._range

    # =========================================================================
    # Auto-ranging
    # =========================================================================

    def enable_auto_range(self, **updates: Any) -> AutoRangeSettings:
        """
        Enable auto-ranging, optionally updating the policy.

        The interval clock restarts at the next ``tick``.

        Raises:
            ConfigurationError: If the updated policy is invalid.
        """
        with self._lock:
            settings = self._validated_auto_range(updates, enabled=True)
            self._auto_range = settings
            self._last_auto_range_ms = None

        logger.info("auto_range_enabled", **settings.model_dump())
        self._listeners.emit(RangeEvent.AUTO_RANGE_CHANGED, settings)
        return settings

    def disable_auto_range(self) -> None:
        with self._lock:
            self._auto_range = self._auto_range.model_copy(update={"enabled": False})
            self._last_auto_range_ms = None
            settings = self._auto_range

        logger.info("auto_range_disabled")
        self._listeners.emit(RangeEvent.AUTO_RANGE_CHANGED, settings)

    def _validated_auto_range(self, updates: Dict[str, Any], enabled: bool) -> AutoRangeSettings:
        data = self._auto_range.model_dump()
        data.update(updates)
        data["enabled"] = enabled
        try:
            return AutoRangeSettings.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid auto-range settings: {e}") from e

    def get_auto_range_settings(self) -> AutoRangeSettings:
        with self._lock:
            return self._auto_range

    def tick(self, now_ms: int) -> Optional[TemperatureRange]:
        """
        Cooperative scheduler tick.

        Runs one auto-range step when auto-ranging is enabled and
        ``update_interval`` seconds have passed since the previous step. The
        first tick after enabling only starts the interval clock.

        Args:
            now_ms: Current time in milliseconds (frame clock or wall clock).

        Returns:
            Optional[TemperatureRange]: The new range if a step ran and adapted.
        """
        with self._lock:
            if not self._auto_range.enabled:
                return None

            if self._last_auto_range_ms is None:
                self._last_auto_range_ms = now_ms
                return None

            if now_ms - self._last_auto_range_ms < self._auto_range.update_interval * 1000:
                return None

            self._last_auto_range_ms = now_ms
            return self.perform_auto_ranging()

    def perform_auto_ranging(self) -> Optional[TemperatureRange]:
        """
        Run one auto-range step immediately.

        Returns:
            Optional[TemperatureRange]: The new range, or None when there are
            too few samples.
        """
        with self._lock:
            new_range = compute_auto_range(
                samples=self._samples.values(),
                current=self._range,
                settings=self._auto_range,
                window=self.config.auto_range_window,
                min_samples=self.config.min_auto_range_samples,
            )
            if new_range is None:
                return None

            old_range = self._apply_range(new_range)

        logger.info(
            "auto_range_updated",
            old_min=old_range.min,
            old_max=old_range.max,
            new_min=new_range.min,
            new_max=new_range.max,
        )
        self._listeners.emit(RangeEvent.RANGE_CHANGED, old_range, new_range)
        self._listeners.emit(RangeEvent.AUTO_RANGE_UPDATED, new_range)
        return new_range

    # =========================================================================
    # Detection settings and thresholds
    # =========================================================================

    def update_detection_settings(self, **updates: Any) -> DetectionSettings:
        """
        Update detection settings.

        Clears the active profile association and resets the baseline used
        for environmental adjustment.

        Raises:
            ConfigurationError: If the updated settings are invalid.
        """
        with self._lock:
            data = self._settings.model_dump()
            data.update(updates)
            try:
                settings = DetectionSettings.model_validate(data)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid detection settings: {e}") from e

            self._settings = settings
            self._baseline_settings = settings
            self._current_profile = None

        logger.info("detection_settings_updated", fields=sorted(updates))
        self._listeners.emit(RangeEvent.SETTINGS_CHANGED, settings)
        return settings

    def get_detection_settings(self) -> DetectionSettings:
        with self._lock:
            return self._settings

    def add_alert_threshold(self, threshold: AlertThreshold) -> None:
        """
        Add a standing threshold.

        Raises:
            ConfigurationError: If a threshold with the same name exists.
        """
        with self._lock:
            if any(t.name == threshold.name for t in self._thresholds):
                raise ConfigurationError(f"Threshold {threshold.name!r} already exists")
            self._thresholds.append(threshold)
            self._current_profile = None
            thresholds = list(self._thresholds)

        logger.info("threshold_added", threshold_name=threshold.name)
        self._listeners.emit(RangeEvent.THRESHOLDS_CHANGED, thresholds)

    def remove_alert_threshold(self, name: str) -> bool:
        """
        Remove a standing threshold by name.

        Returns:
            bool: False if no threshold has that name.
        """
        with self._lock:
            index = next((i for i, t in enumerate(self._thresholds) if t.name == name), None)
            if index is None:
                logger.warning("threshold_remove_unknown", threshold_name=name)
                return False
            del self._thresholds[index]
            self._current_profile = None
            thresholds = list(self._thresholds)

        logger.info("threshold_removed", threshold_name=name)
        self._listeners.emit(RangeEvent.THRESHOLDS_CHANGED, thresholds)
        return True

    def update_alert_threshold(self, name: str, **updates: Any) -> bool:
        """
        Update fields of a standing threshold.

        Returns:
            bool: False if no threshold has that name.

        Raises:
            ConfigurationError: If the result is invalid or renames the
                threshold onto an existing name.
        """
        with self._lock:
            index = next((i for i, t in enumerate(self._thresholds) if t.name == name), None)
            if index is None:
                logger.warning("threshold_update_unknown", threshold_name=name)
                return False

            data = self._thresholds[index].model_dump()
            data.update(updates)
            try:
                updated = AlertThreshold.model_validate(data)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid update for threshold {name!r}: {e}") from e

            if updated.name != name and any(t.name == updated.name for t in self._thresholds):
                raise ConfigurationError(f"Threshold {updated.name!r} already exists")

            self._thresholds[index] = updated
            self._current_profile = None
            thresholds = list(self._thresholds)

        logger.info("threshold_updated", threshold_name=name, fields=sorted(updates))
        self._listeners.emit(RangeEvent.THRESHOLDS_CHANGED, thresholds)
        return True

    def get_alert_thresholds(self) -> List[AlertThreshold]:
        with self._lock:
            return list(self._thresholds)

    # =========================================================================
    # Profiles
    # =========================================================================

    def apply_profile(self, profile_id: str) -> bool:
        """
        Atomically swap range, detection settings and thresholds.

        Readers holding the lock never observe a mix of old and new data.

        Returns:
            bool: False if the profile does not exist (nothing changes).
        """
        with self._lock:
            profile = self._profiles.get(profile_id)
            if profile is None:
                logger.warning("profile_not_found", profile_id=profile_id)
                return False

            self._range = profile.temperature_range
            self._settings = profile.detection_settings
            self._baseline_settings = profile.detection_settings
            self._thresholds = list(profile.alert_thresholds)
            self._current_profile = profile_id
            if self._isotherms.auto_generate:
                self._regenerate_isotherms()

        logger.info("profile_applied", profile_id=profile_id, profile_name=profile.name)
        self._listeners.emit(RangeEvent.PROFILE_APPLIED, profile)
        return True

    def create_custom_profile(
        self,
        name: str,
        temperature_range: TemperatureRange,
        detection_settings: Optional[DetectionSettings] = None,
        alert_thresholds: Optional[Iterable[AlertThreshold]] = None,
        description: str = "",
        recommended: bool = False,
    ) -> TemperatureProfile:
        """
        Create and store a custom profile.

        The profile gets a generated ``custom_*`` id and the custom category.
        It is not applied.

        Raises:
            ConfigurationError: If the profile is invalid.
        """
        try:
            profile = TemperatureProfile(
                id=f"custom_{uuid4().hex[:12]}",
                name=name,
                description=description,
                category=ProfileCategory.CUSTOM,
                recommended=recommended,
                temperature_range=temperature_range,
                detection_settings=detection_settings or DetectionSettings(),
                alert_thresholds=list(alert_thresholds or []),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid profile {name!r}: {e}") from e

        with self._lock:
            self._profiles[profile.id] = profile

        logger.info("profile_created", profile_id=profile.id, profile_name=name)
        self._listeners.emit(RangeEvent.PROFILE_CREATED, profile)
        return profile

    def get_profiles(self) -> List[TemperatureProfile]:
        with self._lock:
            return list(self._profiles.values())

    def get_profile(self, profile_id: str) -> Optional[TemperatureProfile]:
        with self._lock:
            return self._profiles.get(profile_id)

    def get_current_profile(self) -> Optional[TemperatureProfile]:
        """The applied profile, or None after any direct edit."""
        with self._lock:
            if self._current_profile is None:
                return None
            return self._profiles.get(self._current_profile)

    # =========================================================================
    # Isotherms
    # =========================================================================

    def _regenerate_isotherms(self) -> List[IsothermConfig]:
        isotherms = generate_isotherms(self._range, self._isotherms.spacing)
        self._isotherms = self._isotherms.model_copy(update={"isotherms": isotherms})
        return isotherms

    def generate_isotherms(self) -> List[IsothermConfig]:
        """Regenerate isotherms for the current range and spacing."""
        with self._lock:
            isotherms = self._regenerate_isotherms()
            settings = self._isotherms

        self._listeners.emit(RangeEvent.ISOTHERMS_CHANGED, settings)
        return isotherms

    def set_isotherm_settings(self, **updates: Any) -> IsothermSettings:
        """
        Update isotherm settings.

        Isotherms are regenerated when auto-generation is on and the spacing
        changed or isotherms were just enabled.

        Raises:
            ConfigurationError: If the updated settings are invalid.
        """
        with self._lock:
            previous = self._isotherms
            data = previous.model_dump()
            data.update(updates)
            try:
                settings = IsothermSettings.model_validate(data)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid isotherm settings: {e}") from e

            self._isotherms = settings
            spacing_changed = settings.spacing != previous.spacing
            just_enabled = settings.enabled and not previous.enabled
            if settings.auto_generate and (spacing_changed or just_enabled):
                self._regenerate_isotherms()
            settings = self._isotherms

        self._listeners.emit(RangeEvent.ISOTHERMS_CHANGED, settings)
        return settings

    def add_isotherm(self, temperature: float, color: str, **options: Any) -> IsothermConfig:
        """
        Add a custom isotherm.

        Custom isotherms are replaced the next time isotherms regenerate.

        Raises:
            ConfigurationError: If the isotherm is invalid.
        """
        try:
            isotherm = IsothermConfig(temperature=temperature, color=color, **options)
        except (ValidationError, TypeError) as e:
            raise ConfigurationError(f"Invalid isotherm: {e}") from e

        with self._lock:
            self._isotherms = self._isotherms.model_copy(
                update={"isotherms": [*self._isotherms.isotherms, isotherm]}
            )
            settings = self._isotherms

        self._listeners.emit(RangeEvent.ISOTHERMS_CHANGED, settings)
        return isotherm

    def remove_isotherm(self, isotherm_id: str) -> bool:
        with self._lock:
            remaining = [i for i in self._isotherms.isotherms if i.id != isotherm_id]
            if len(remaining) == len(self._isotherms.isotherms):
                return False
            self._isotherms = self._isotherms.model_copy(update={"isotherms": remaining})
            settings = self._isotherms

        self._listeners.emit(RangeEvent.ISOTHERMS_CHANGED, settings)
        return True

    def get_isotherm_settings(self) -> IsothermSettings:
        with self._lock:
            return self._isotherms

    # =========================================================================
    # Environment
    # =========================================================================

    def set_environmental_context(self, context: EnvironmentalContext) -> DetectionSettings:
        """
        Adjust detection settings for ambient conditions.

        The adjustment starts from the settings in force before any
        environmental adjustment, so repeated contexts do not compound. The
        profile association is kept.

        Returns:
            DetectionSettings: The settings now in force.
        """
        with self._lock:
            settings, adjustments = adjust_for_environment(self._baseline_settings, context)
            self._environment = context
            self._settings = settings

        logger.info(
            "environmental_context_set",
            room_temp=context.room_temp,
            adjustments=adjustments,
        )
        self._listeners.emit(RangeEvent.ENVIRONMENT_CHANGED, context, adjustments)
        return settings

    def get_environmental_context(self) -> Optional[EnvironmentalContext]:
        with self._lock:
            return self._environment

    # =========================================================================
    # History and statistics
    # =========================================================================

    def get_background_temperature(self) -> float:
        with self._lock:
            return self._background

    def get_temperature_statistics(self) -> TemperatureStatistics:
        """Summary of the sample window (all zeros when empty)."""
        with self._lock:
            stats = self._samples.statistics()

        if stats is None:
            return TemperatureStatistics()
        return TemperatureStatistics(
            min=stats.minimum,
            max=stats.maximum,
            mean=stats.mean,
            std_dev=stats.std_dev,
            sample_count=stats.count,
        )

    def get_recent_frames(self) -> List[ThermalFrame]:
        with self._lock:
            return list(self._frames)

    def reset_temperature_history(self) -> None:
        """Clear samples and frames and restore the initial background."""
        with self._lock:
            self._samples.reset()
            self._frames.clear()
            self._background = self.config.initial_background

        logger.info("temperature_history_reset")

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def add_listener(self, event: RangeEvent, callback: Callable[..., Any]) -> None:
        self._listeners.add(event, callback)

    def remove_listener(self, event: RangeEvent, callback: Callable[..., Any]) -> bool:
        return self._listeners.remove(event, callback)

    def dispose(self) -> None:
        """Stop auto-ranging and drop every listener."""
        with self._lock:
            self._auto_range = self._auto_range.model_copy(update={"enabled": False})
            self._last_auto_range_ms = None
            self._listeners.clear()

        logger.info("range_controller_disposed")
