"""
Thermal monitoring facade.

This module wires the alert rule engine, the range controller and the
notification dispatcher into one object that an acquisition loop can feed
frames into.

Data flow per frame:
    1. The range controller records samples and evaluates standing thresholds.
    2. The rule engine evaluates every enabled rule and gates the detections.
    3. New rule alerts are submitted to the dispatcher (non-blocking).
    4. Auto-ranging is ticked on the frame clock.

Example:
    >>> from thermosentry.config import load_config
    >>> from thermosentry.service import create_monitor
    >>>
    >>> monitor = create_monitor(load_config())
    >>> result = monitor.process_frame(frame)
    >>> print(len(result.alerts), len(result.temperature_alerts))
"""

import asyncio
import threading
from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from thermosentry.config.models import AppConfig
from thermosentry.detection.channels import LogChannel
from thermosentry.detection.detectors import create_default_registry
from thermosentry.detection.dispatcher import NotificationDispatcher
from thermosentry.detection.engine import AlertRuleEngine
from thermosentry.models.alerts import NotificationMethod, ThermalAlert
from thermosentry.models.frame import ThermalFrame
from thermosentry.models.ranging import TemperatureAlert
from thermosentry.ranging.controller import RangeController

logger = structlog.get_logger(__name__)


@dataclass
class FrameResult:
    """
    Output of one frame.

    Attributes:
        alerts: Rule alerts that passed gating.
        temperature_alerts: Standing threshold violations.
    """

    alerts: List[ThermalAlert] = field(default_factory=list)
    temperature_alerts: List[TemperatureAlert] = field(default_factory=list)

    @property
    def has_alerts(self) -> bool:
        return bool(self.alerts or self.temperature_alerts)


class ThermalMonitor:
    """
    Owns the engine, controller and dispatcher for one sensor.

    A single lock spans each frame so that both components see frames in
    the same order.

    Attributes:
        engine: Rule evaluation and alert lifecycle.
        controller: Adaptive ranging state.
        dispatcher: Notification fan-out.
    """

    def __init__(
        self,
        engine: AlertRuleEngine,
        controller: RangeController,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self.engine = engine
        self.controller = controller
        self.dispatcher = dispatcher
        self._lock = threading.Lock()
        self._frames_processed = 0

    def process_frame(self, frame: ThermalFrame) -> FrameResult:
        """
        Push one frame through the controller and the engine.

        Args:
            frame: Calibrated thermal frame.

        Returns:
            FrameResult: Rule alerts and threshold alerts for this frame.
        """
        with self._lock:
            temperature_alerts = self.controller.process_frame(frame)
            alerts = self.engine.process_frame(frame)
            self.controller.tick(frame.timestamp)
            self._frames_processed += 1

        if alerts or temperature_alerts:
            logger.debug(
                "frame_alerts",
                frame_number=frame.frame_number,
                rule_alerts=len(alerts),
                threshold_alerts=len(temperature_alerts),
            )
        return FrameResult(alerts=alerts, temperature_alerts=temperature_alerts)

    @property
    def frames_processed(self) -> int:
        return self._frames_processed

    async def run_auto_range(self, stop_event: asyncio.Event) -> None:
        """
        Run auto-ranging on a wall-clock timer until ``stop_event`` is set.

        For deployments whose frame timestamps are not a usable clock.
        Waits ``update_interval`` seconds between steps and re-reads the
        interval each time, so policy changes apply on the next step.
        """
        logger.info("auto_range_loop_started")
        try:
            while not stop_event.is_set():
                interval = self.controller.get_auto_range_settings().update_interval
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=interval)
                except asyncio.TimeoutError:
                    pass
                else:
                    break

                if self.controller.get_auto_range_settings().enabled:
                    self.controller.perform_auto_ranging()
        finally:
            logger.info("auto_range_loop_stopped")

    def shutdown(self) -> None:
        """Release engine and controller state."""
        self.engine.destroy()
        self.controller.dispose()
        logger.info("thermal_monitor_shutdown", frames_processed=self._frames_processed)


def create_monitor(
    config: Optional[AppConfig] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
) -> ThermalMonitor:
    """
    Build a monitor from application configuration.

    Args:
        config: Loaded configuration. Defaults to all built-in defaults.
        dispatcher: Pre-built dispatcher. Defaults to one with a log channel.

    Returns:
        ThermalMonitor: Ready to receive frames.
    """
    config = config or AppConfig()
    alerting = config.alerting

    if dispatcher is None:
        dispatcher = NotificationDispatcher(
            channels={NotificationMethod.LOG: LogChannel()},
            max_queue_size=alerting.notification_queue_size,
        )

    engine = AlertRuleEngine(
        rules=config.rules,
        registry=create_default_registry(
            temperature_radius=alerting.temperature_cluster_radius,
            anomaly_radius=alerting.anomaly_cluster_radius,
        ),
        notifier=dispatcher,
        history_limit=alerting.history_limit,
        location_grid=alerting.location_grid,
    )

    controller = RangeController(
        config=config.ranging,
        auto_range=config.auto_range,
        isotherms=config.isotherms,
        profiles=config.profiles,
    )

    logger.info(
        "thermal_monitor_created",
        rules_count=len(engine.get_rules()),
        profiles_count=len(controller.get_profiles()),
        channels=[m.value for m in dispatcher.channels],
    )
    return ThermalMonitor(engine=engine, controller=controller, dispatcher=dispatcher)
