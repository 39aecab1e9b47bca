"""
Typed listener registration.

Components publish lifecycle events to registered callbacks. Each event
name is an enum member, so a typo in a subscription fails at the call site
instead of silently never firing. A failing listener is logged and does
not prevent delivery to the others.

Classes:
    EngineEvent: Events published by the alert rule engine
    RangeEvent: Events published by the range controller
    ListenerRegistry: Callback table with exception isolation

Example:
    >>> registry = ListenerRegistry("engine")
    >>> registry.add(EngineEvent.ALERT_TRIGGERED, lambda alert: print(alert.id))
    >>> registry.emit(EngineEvent.ALERT_TRIGGERED, alert)
"""

from enum import Enum
from typing import Any, Callable, Dict, List

import structlog

logger = structlog.get_logger(__name__)

Listener = Callable[..., Any]


class EngineEvent(str, Enum):
    """Events published by ``AlertRuleEngine``."""

    ALERT_TRIGGERED = "alert_triggered"
    ALERT_ACKNOWLEDGED = "alert_acknowledged"
    ALERT_RESOLVED = "alert_resolved"
    RULE_ADDED = "rule_added"
    RULE_UPDATED = "rule_updated"
    RULE_REMOVED = "rule_removed"
    ENABLED_CHANGED = "enabled_changed"


class RangeEvent(str, Enum):
    """Events published by ``RangeController``."""

    TEMPERATURE_ALERTS = "temperature_alerts"
    RANGE_CHANGED = "range_changed"
    AUTO_RANGE_UPDATED = "auto_range_updated"
    AUTO_RANGE_CHANGED = "auto_range_changed"
    SETTINGS_CHANGED = "settings_changed"
    THRESHOLDS_CHANGED = "thresholds_changed"
    PROFILE_APPLIED = "profile_applied"
    PROFILE_CREATED = "profile_created"
    ISOTHERMS_CHANGED = "isotherms_changed"
    ENVIRONMENT_CHANGED = "environment_changed"


class ListenerRegistry:
    """
    Callback table keyed by event.

    Attributes:
        name: Owner name used in log context.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: Dict[Enum, List[Listener]] = {}

    def add(self, event: Enum, callback: Listener) -> None:
        """Register a callback for an event."""
        self._listeners.setdefault(event, []).append(callback)

    def remove(self, event: Enum, callback: Listener) -> bool:
        """
        Unregister a callback.

        Returns:
            bool: True if the callback was registered.
        """
        callbacks = self._listeners.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)
            return True
        return False

    def emit(self, event: Enum, *args: Any) -> int:
        """
        Invoke every callback registered for ``event``.

        Returns:
            int: Number of callbacks that completed without raising.
        """
        delivered = 0
        for callback in list(self._listeners.get(event, [])):
            try:
                callback(*args)
                delivered += 1
            except Exception as e:
                logger.error(
                    "listener_failed",
                    owner=self.name,
                    event_name=event.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        return delivered

    def clear(self) -> None:
        self._listeners.clear()
