"""
Alert rule engine for the thermal alert lifecycle.

This module provides the AlertRuleEngine class which owns the rule set and
orchestrates evaluation, gating, and the lifecycle of triggered alerts.

Key Features:
    - Evaluates every enabled rule against each frame
    - Persistence gating (min_duration) per rule location
    - Hysteresis latching so boundary values do not flap
    - Cancelable per-location cooldowns
    - Bounded alert history with acknowledge / resolve transitions
    - Per-rule failure isolation
    - Running statistics and typed listener callbacks

Example:
    >>> engine = AlertRuleEngine(notifier=dispatcher)
    >>> alerts = engine.process_frame(frame)
    >>> for alert in alerts:
    ...     print(alert.id, alert.message)
"""

import threading
from collections import Counter, deque
from datetime import datetime
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Protocol, Tuple

import structlog
from pydantic import ValidationError

from thermosentry.detection.cooldown import CooldownScheduler
from thermosentry.detection.detectors import Detection, DetectorRegistry, create_default_registry
from thermosentry.detection.hysteresis import HysteresisLatch
from thermosentry.detection.persistence import (
    LocationTracker,
    PersistenceTracker,
    round_half_up,
    rule_prefix,
)
from thermosentry.events import EngineEvent, ListenerRegistry
from thermosentry.exceptions import ConfigurationError, DataError
from thermosentry.models.alerts import (
    AlertHistoryEntry,
    AlertLocation,
    AlertPriority,
    AlertRule,
    AlertStatistics,
    NotificationMethod,
    RuleConditions,
    ThermalAlert,
    ThermalAlertType,
)
from thermosentry.models.frame import ThermalFrame

logger = structlog.get_logger(__name__)


# Default configuration values
DEFAULT_HISTORY_LIMIT = 1000
DEFAULT_LOCATION_GRID = 1.0


DEFAULT_RULES: List[AlertRule] = [
    AlertRule(
        id="high-temp-critical",
        name="Critical High Temperature",
        type=ThermalAlertType.HIGH_TEMPERATURE,
        threshold=80.0,
        priority=AlertPriority.CRITICAL,
        hysteresis=2.0,
        min_duration=1000,
        cooldown_period=30000,
        notification_methods=[NotificationMethod.POPUP, NotificationMethod.SOUND],
        conditions=RuleConditions(min_pixel_count=10),
    ),
    AlertRule(
        id="rapid-temp-change",
        name="Rapid Temperature Change",
        type=ThermalAlertType.RAPID_CHANGE,
        threshold=10.0,
        priority=AlertPriority.HIGH,
        hysteresis=1.0,
        min_duration=500,
        cooldown_period=10000,
        notification_methods=[NotificationMethod.POPUP],
        conditions=RuleConditions(min_pixel_count=5, temporal_filtering=False),
    ),
    AlertRule(
        id="anomaly-detection",
        name="Temperature Anomaly",
        type=ThermalAlertType.ANOMALY,
        threshold=3.0,
        priority=AlertPriority.MEDIUM,
        hysteresis=0.5,
        min_duration=2000,
        cooldown_period=15000,
        notification_methods=[NotificationMethod.LOG],
        conditions=RuleConditions(min_pixel_count=20),
    ),
]


class AlertNotifier(Protocol):
    """
    Protocol for the notification sink the engine hands new alerts to.

    ``submit`` must not block; delivery happens outside frame processing.
    """

    def submit(self, alert: ThermalAlert, methods: Iterable[NotificationMethod]) -> bool:
        """Queue an alert for delivery."""
        ...


class AlertRuleEngine:
    """
    Owns the rule set and the alert lifecycle.

    Responsibilities:
    - Run each enabled rule's detector against incoming frames
    - Gate detections through persistence, hysteresis and cooldown
    - Create ThermalAlert records and keep the active set and history
    - Hand new alerts to the notifier without blocking
    - Keep running statistics

    A rule location is identified by ``(rule_id, location_key)``. A new
    location gets a key from its centroid on a ``location_grid`` pixel grid;
    a detection overlapping a tracked location keeps that location's key.

    Attributes:
        registry: Detector lookup by rule type.
        notifier: Receives new alerts for delivery (optional).
        history_limit: Maximum history entries kept (oldest evicted).
        location_grid: Cell size used to discretise centroids.
    """

    def __init__(
        self,
        rules: Optional[Iterable[AlertRule]] = None,
        registry: Optional[DetectorRegistry] = None,
        notifier: Optional[AlertNotifier] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        location_grid: float = DEFAULT_LOCATION_GRID,
    ) -> None:
        """
        Initialize the engine.

        Args:
            rules: Initial rules. Defaults to ``DEFAULT_RULES``; pass an empty
                list for an engine without rules.
            registry: Detector registry. Defaults to the built-in detectors.
            notifier: Notification sink with a non-blocking ``submit``.
            history_limit: Maximum number of history entries.
            location_grid: Cell size in pixels for location keys.

        Raises:
            ConfigurationError: If history_limit or location_grid is invalid,
                or two initial rules share an id.
        """
        if history_limit < 1:
            raise ConfigurationError(f"history_limit must be >= 1, got {history_limit}")
        if location_grid <= 0:
            raise ConfigurationError(f"location_grid must be > 0, got {location_grid}")

        self.registry = registry or create_default_registry()
        self.notifier = notifier
        self.history_limit = history_limit
        self.location_grid = location_grid

        self._lock = threading.RLock()
        self._enabled = True
        self._rules: Dict[str, AlertRule] = {}
        self._active_alerts: Dict[str, ThermalAlert] = {}
        self._history: Deque[AlertHistoryEntry] = deque(maxlen=history_limit)

        # Gating state
        self._persistence = PersistenceTracker()
        self._cooldowns = CooldownScheduler()
        self._latch = HysteresisLatch()
        self._locations = LocationTracker(location_grid)

        # Statistics
        self._total_alerts = 0
        self._alerts_by_type: Counter = Counter()
        self._alerts_by_priority: Counter = Counter()
        self._acknowledged_count = 0
        self._response_time_total_ms = 0.0
        self._last_calculated = datetime.utcnow()

        self._listeners = ListenerRegistry("alert_rule_engine")

        for rule in DEFAULT_RULES if rules is None else rules:
            self.add_rule(rule)

        logger.info(
            "alert_rule_engine_initialized",
            rules_count=len(self._rules),
            history_limit=history_limit,
            location_grid=location_grid,
        )

    # =========================================================================
    # Frame processing
    # =========================================================================

    def process_frame(self, frame: ThermalFrame) -> List[ThermalAlert]:
        """
        Evaluate every enabled rule against a frame.

        A rule whose evaluation raises is logged and skipped; the remaining
        rules still run. A frame whose data length does not match its
        dimensions is evaluated on a best-effort basis.

        Args:
            frame: The frame to evaluate.

        Returns:
            List[ThermalAlert]: Alerts emitted for this frame.

        Example:
            >>> alerts = engine.process_frame(frame)
            >>> print(f"{len(alerts)} new alerts")
        """
        with self._lock:
            if not self._enabled:
                return []

            try:
                frame.check_dimensions()
            except DataError as e:
                logger.warning(
                    "frame_dimension_mismatch",
                    frame_number=frame.frame_number,
                    expected=e.expected,
                    actual=e.actual,
                )

            self._cooldowns.expire(frame.timestamp)

            triggered: List[Tuple[ThermalAlert, AlertRule]] = []
            for rule in list(self._rules.values()):
                if not rule.enabled:
                    continue

                try:
                    triggered.extend((alert, rule) for alert in self._evaluate_rule(rule, frame))
                except Exception as e:
                    logger.error(
                        "rule_evaluation_failed",
                        rule_id=rule.id,
                        frame_number=frame.frame_number,
                        error=str(e),
                        error_type=type(e).__name__,
                    )

            for alert, rule in triggered:
                self._record_alert(alert, rule)

            return [alert for alert, _ in triggered]

    def _evaluate_rule(self, rule: AlertRule, frame: ThermalFrame) -> List[ThermalAlert]:
        """
        Run one rule's detector and gate its detections.

        Detection runs to completion before any gating state is touched, so a
        detector failure leaves the rule's state as it was.
        """
        detector = self.registry.get(rule.type)
        detections = detector.detect(frame, rule)
        release_regions = detector.release_regions(frame, rule) if rule.has_hysteresis else None

        prefix = rule_prefix(rule.id)
        keys = self._locations.resolve(
            rule.id, [(detection.centroid, detection.region) for detection in detections]
        )
        seen = set(keys)

        if release_regions is not None:
            for detection, key in zip(detections, keys):
                self._latch.follow(key, _centroid_location(detection))
            self._latch.release_outside(prefix, release_regions)

        if rule.has_persistence:
            for key in keys:
                self._persistence.track(key, True, frame.timestamp)
            self._persistence.retain(prefix, keys)

        alerts: List[ThermalAlert] = []
        for index, (detection, key) in enumerate(zip(detections, keys)):
            if rule.has_persistence and not self._persistence.is_persisted(
                key, rule.min_duration, frame.timestamp
            ):
                continue

            if self._latch.is_latched(key):
                logger.debug("alert_suppressed", rule_id=rule.id, location_key=key, reason="hysteresis")
                continue

            if self._cooldowns.is_cooling(key, frame.timestamp):
                logger.debug(
                    "alert_suppressed",
                    rule_id=rule.id,
                    location_key=key,
                    reason="cooldown",
                    remaining_ms=self._cooldowns.remaining(key, frame.timestamp),
                )
                continue

            alert = self._build_alert(rule, frame, detection, index)
            self._cooldowns.schedule(key, frame.timestamp, rule.cooldown_period)
            if rule.has_hysteresis:
                self._latch.latch(key, alert.location)
            alerts.append(alert)

        self._locations.retain(
            rule.id,
            lambda key: key in seen or self._latch.is_latched(key) or key in self._cooldowns,
        )
        return alerts

    def _build_alert(
        self,
        rule: AlertRule,
        frame: ThermalFrame,
        detection: Detection,
        index: int,
    ) -> ThermalAlert:
        return ThermalAlert(
            id=f"{rule.id}-{frame.frame_number}-{index}",
            rule_id=rule.id,
            type=rule.type,
            priority=rule.priority,
            timestamp=frame.timestamp,
            message=detection.message,
            location=_centroid_location(detection),
            temperature=detection.temperature,
            region=detection.region if rule.type.is_spatial else None,
            metadata=dict(detection.metadata),
        )

    def _record_alert(self, alert: ThermalAlert, rule: AlertRule) -> None:
        self._active_alerts[alert.id] = alert
        self._history.append(AlertHistoryEntry(alert=alert))

        self._total_alerts += 1
        self._alerts_by_type[alert.type.value] += 1
        self._alerts_by_priority[alert.priority.value] += 1
        self._last_calculated = datetime.utcnow()

        logger.info(
            "alert_triggered",
            alert_id=alert.id,
            rule_id=rule.id,
            alert_type=alert.type.value,
            priority=alert.priority.value,
            temperature=alert.temperature,
            location=(alert.location.x, alert.location.y),
        )

        self._listeners.emit(EngineEvent.ALERT_TRIGGERED, alert)

        if self.notifier is not None and rule.notification_methods:
            self.notifier.submit(alert, rule.notification_methods)

    # =========================================================================
    # Rule management
    # =========================================================================

    def add_rule(self, rule: AlertRule) -> None:
        """
        Add a rule.

        Raises:
            ConfigurationError: If a rule with the same id exists.
        """
        with self._lock:
            if rule.id in self._rules:
                raise ConfigurationError(f"Rule {rule.id!r} already exists")
            self._rules[rule.id] = rule

        logger.info("rule_added", rule_id=rule.id, rule_type=rule.type.value)
        self._listeners.emit(EngineEvent.RULE_ADDED, rule)

    def update_rule(self, rule_id: str, **updates: Any) -> bool:
        """
        Update fields of an existing rule.

        The rule is re-validated as a whole; on failure nothing changes.
        Persistence and hysteresis state of the rule are reset because the
        detection level may have moved. Cooldowns are kept.

        Args:
            rule_id: Rule to update.
            **updates: Field values to replace.

        Returns:
            bool: False if the rule does not exist.

        Raises:
            ConfigurationError: If the updated rule is invalid or the update
                tries to change the id.

        Example:
            >>> engine.update_rule("high-temp-critical", threshold=75.0)
            True
        """
        with self._lock:
            current = self._rules.get(rule_id)
            if current is None:
                logger.warning("rule_update_unknown", rule_id=rule_id)
                return False

            if "id" in updates and updates["id"] != rule_id:
                raise ConfigurationError(f"Rule id cannot be changed ({rule_id!r})")

            data = current.model_dump()
            data.update(updates)
            try:
                updated = AlertRule.model_validate(data)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid update for rule {rule_id!r}: {e}") from e

            self._rules[rule_id] = updated
            prefix = rule_prefix(rule_id)
            self._persistence.clear(prefix)
            self._latch.clear(prefix)

        logger.info("rule_updated", rule_id=rule_id, fields=sorted(updates))
        self._listeners.emit(EngineEvent.RULE_UPDATED, updated)
        return True

    def remove_rule(self, rule_id: str) -> bool:
        """
        Remove a rule with its active alerts and all gating state.

        History entries of the rule's past alerts are kept.

        Returns:
            bool: False if the rule does not exist.
        """
        with self._lock:
            if self._rules.pop(rule_id, None) is None:
                logger.warning("rule_remove_unknown", rule_id=rule_id)
                return False

            removed_alerts = [
                alert_id for alert_id, alert in self._active_alerts.items()
                if alert.rule_id == rule_id
            ]
            for alert_id in removed_alerts:
                del self._active_alerts[alert_id]

            prefix = rule_prefix(rule_id)
            cancelled = self._cooldowns.cancel_prefix(prefix)
            self._persistence.clear(prefix)
            self._latch.clear(prefix)
            self._locations.clear(rule_id)

        logger.info(
            "rule_removed",
            rule_id=rule_id,
            active_alerts_cleared=len(removed_alerts),
            cooldowns_cancelled=cancelled,
        )
        self._listeners.emit(EngineEvent.RULE_REMOVED, rule_id)
        return True

    def get_rules(self) -> List[AlertRule]:
        with self._lock:
            return list(self._rules.values())

    def get_rule(self, rule_id: str) -> Optional[AlertRule]:
        with self._lock:
            return self._rules.get(rule_id)

    # =========================================================================
    # Alert lifecycle
    # =========================================================================

    def _find_history_index(self, alert_id: str) -> Optional[int]:
        for index in range(len(self._history) - 1, -1, -1):
            if self._history[index].alert.id == alert_id:
                return index
        return None

    def acknowledge_alert(self, alert_id: str) -> bool:
        """
        Mark an alert as acknowledged.

        Acknowledging twice is a no-op that still returns True.

        Returns:
            bool: False if the alert is not in the history.
        """
        with self._lock:
            index = self._find_history_index(alert_id)
            if index is None:
                logger.warning("alert_acknowledge_unknown", alert_id=alert_id)
                return False

            entry = self._history[index]
            if entry.acknowledged:
                return True

            entry = entry.acknowledge()
            self._history[index] = entry

            response_ms = (entry.acknowledged_at - entry.recorded_at).total_seconds() * 1000
            self._acknowledged_count += 1
            self._response_time_total_ms += max(response_ms, 0.0)
            self._last_calculated = datetime.utcnow()

        logger.info("alert_acknowledged", alert_id=alert_id, response_time_ms=response_ms)
        self._listeners.emit(EngineEvent.ALERT_ACKNOWLEDGED, entry)
        return True

    def resolve_alert(self, alert_id: str) -> bool:
        """
        Mark an alert as resolved and remove it from the active set.

        Resolving twice is a no-op that still returns True.

        Returns:
            bool: False if the alert is neither active nor in the history.
        """
        with self._lock:
            was_active = self._active_alerts.pop(alert_id, None) is not None
            index = self._find_history_index(alert_id)
            if index is None:
                if not was_active:
                    logger.warning("alert_resolve_unknown", alert_id=alert_id)
                return was_active

            entry = self._history[index]
            if entry.resolved:
                return True

            entry = entry.resolve()
            self._history[index] = entry

        logger.info("alert_resolved", alert_id=alert_id)
        self._listeners.emit(EngineEvent.ALERT_RESOLVED, entry)
        return True

    def get_active_alerts(self) -> List[ThermalAlert]:
        """Active alerts, oldest first."""
        with self._lock:
            return list(self._active_alerts.values())

    def get_alert_history(self, limit: Optional[int] = None) -> List[AlertHistoryEntry]:
        """
        History entries, newest first.

        Args:
            limit: Maximum number of entries to return.
        """
        with self._lock:
            entries = list(reversed(self._history))
        if limit is not None:
            entries = entries[:max(limit, 0)]
        return entries

    def get_statistics(self) -> AlertStatistics:
        """Snapshot of the running statistics."""
        with self._lock:
            average = (
                self._response_time_total_ms / self._acknowledged_count
                if self._acknowledged_count
                else 0.0
            )
            return AlertStatistics(
                total_alerts=self._total_alerts,
                alerts_by_type=dict(self._alerts_by_type),
                alerts_by_priority=dict(self._alerts_by_priority),
                average_response_time_ms=average,
                last_calculated=self._last_calculated,
            )

    # =========================================================================
    # Engine state
    # =========================================================================

    def set_enabled(self, enabled: bool) -> None:
        """
        Enable or disable the engine.

        Disabling clears every active alert and all pending cooldown,
        persistence and hysteresis state; the engine stays dormant until
        re-enabled.
        """
        with self._lock:
            if enabled == self._enabled:
                return
            self._enabled = enabled

            cleared = 0
            if not enabled:
                cleared = len(self._active_alerts)
                self._active_alerts.clear()
                self._cooldowns.cancel_all()
                self._persistence.clear()
                self._latch.clear()
                self._locations.clear()

        logger.info("engine_enabled_changed", enabled=enabled, active_alerts_cleared=cleared)
        self._listeners.emit(EngineEvent.ENABLED_CHANGED, enabled)

    def is_enabled(self) -> bool:
        return self._enabled

    def add_listener(self, event: EngineEvent, callback: Callable[..., Any]) -> None:
        """
        Register a callback for an engine event.

        Example:
            >>> engine.add_listener(EngineEvent.ALERT_TRIGGERED, on_alert)
        """
        self._listeners.add(event, callback)

    def remove_listener(self, event: EngineEvent, callback: Callable[..., Any]) -> bool:
        return self._listeners.remove(event, callback)

    def pending_cooldowns(self) -> int:
        with self._lock:
            return len(self._cooldowns)

    def destroy(self) -> None:
        """Cancel all timers and gating state and drop every listener."""
        with self._lock:
            self._cooldowns.cancel_all()
            self._persistence.clear()
            self._latch.clear()
            self._locations.clear()
            self._active_alerts.clear()
            self._listeners.clear()
        logger.info("alert_rule_engine_destroyed")


def _centroid_location(detection: Detection) -> AlertLocation:
    centroid_x, centroid_y = detection.centroid
    return AlertLocation(x=round_half_up(centroid_x), y=round_half_up(centroid_y))
