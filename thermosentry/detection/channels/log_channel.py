"""
Log notification channel.

Writes each alert as a structured warning event. The alert's frame timestamp
is carried as ``alert_timestamp`` so it survives the ISO ``timestamp`` the
structlog pipeline stamps on every event.

Example:
    >>> channel = LogChannel()
    >>> await channel.dispatch(alert)
"""

import structlog

from thermosentry.models.alerts import ThermalAlert

logger = structlog.get_logger(__name__)


class LogChannel:
    """Alert channel backed by structlog."""

    def __init__(self, event_name: str = "thermal_alert") -> None:
        self.event_name = event_name

    async def dispatch(self, alert: ThermalAlert) -> None:
        logger.warning(
            self.event_name,
            alert_id=alert.id,
            rule_id=alert.rule_id,
            alert_type=alert.type.value,
            priority=alert.priority.value,
            temperature=alert.temperature,
            location=(alert.location.x, alert.location.y),
            alert_message=alert.message,
            alert_timestamp=alert.timestamp,
        )
