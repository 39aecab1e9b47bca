"""Tests for the monitor facade and logging setup."""

from __future__ import annotations

import asyncio

import numpy as np

from thermosentry.config.models import AlertingConfig, AppConfig, LogFormat, LoggingConfig
from thermosentry.logging_setup import setup_logging
from thermosentry.models.alerts import NotificationMethod, ThermalAlertType
from thermosentry.models.ranging import AutoRangeSettings
from thermosentry.ranging.profiles import DEFAULT_RANGE
from thermosentry.service import FrameResult, create_monitor

from conftest import hot_frame, make_frame, make_rule


def spread_frame(timestamp: int = 0, frame_number: int = 0):
    return make_frame(np.linspace(10.0, 30.0, 100).reshape(10, 10),
                      timestamp=timestamp, frame_number=frame_number)


class TestThermalMonitor:
    def test_frame_feeds_engine_and_controller(self):
        monitor = create_monitor(AppConfig(rules=[make_rule()]))
        result = monitor.process_frame(hot_frame(12))

        assert isinstance(result, FrameResult)
        assert len(result.alerts) == 1
        assert len(result.temperature_alerts) == 12
        assert all(a.threshold_name == "Hot Anomaly" for a in result.temperature_alerts)
        assert result.has_alerts
        assert monitor.frames_processed == 1

    def test_alerts_queued_for_delivery(self):
        monitor = create_monitor(AppConfig(rules=[make_rule(notification_methods=[NotificationMethod.LOG])]))
        monitor.process_frame(hot_frame(12))

        assert monitor.dispatcher.pending == 1
        assert asyncio.run(monitor.dispatcher.drain()) == 1

    def test_default_rules_when_unconfigured(self):
        monitor = create_monitor()
        assert len(monitor.engine.get_rules()) == 3

    def test_wiring_from_config(self):
        config = AppConfig(
            rules=[],
            alerting=AlertingConfig(temperature_cluster_radius=3.0, anomaly_cluster_radius=7.0,
                                    notification_queue_size=8, location_grid=2.0),
        )
        monitor = create_monitor(config)

        registry = monitor.engine.registry
        assert registry.get(ThermalAlertType.HIGH_TEMPERATURE).clusterer.radius == 3.0
        assert registry.get(ThermalAlertType.ANOMALY).clusterer.radius == 7.0
        assert monitor.dispatcher.max_queue_size == 8
        assert monitor.engine.location_grid == 2.0

    def test_auto_range_ticks_on_frame_clock(self):
        config = AppConfig(rules=[], auto_range=AutoRangeSettings(enabled=True, update_interval=1.0))
        monitor = create_monitor(config)

        monitor.process_frame(spread_frame(timestamp=0))
        assert monitor.controller.get_temperature_range() == DEFAULT_RANGE

        monitor.process_frame(spread_frame(timestamp=1000, frame_number=1))
        assert monitor.controller.get_temperature_range() != DEFAULT_RANGE

    def test_wall_clock_auto_range(self):
        config = AppConfig(rules=[], auto_range=AutoRangeSettings(enabled=True, update_interval=0.01))
        monitor = create_monitor(config)
        monitor.controller.process_frame(spread_frame())

        async def scenario():
            stop = asyncio.Event()
            task = asyncio.create_task(monitor.run_auto_range(stop))
            await asyncio.sleep(0.1)
            stop.set()
            await task

        asyncio.run(scenario())
        assert monitor.controller.get_temperature_range() != DEFAULT_RANGE

    def test_shutdown(self):
        monitor = create_monitor(AppConfig(rules=[make_rule(cooldown_period=60000)]))
        monitor.process_frame(hot_frame(12))
        monitor.shutdown()

        assert monitor.engine.get_active_alerts() == []
        assert monitor.engine.pending_cooldowns() == 0


class TestLogging:
    def test_setup_logging_formats(self):
        setup_logging(LoggingConfig(format=LogFormat.TEXT))
        setup_logging(LoggingConfig(format=LogFormat.JSON))
        setup_logging()
