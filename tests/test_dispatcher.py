"""Tests for the notification dispatcher and its channels."""

from __future__ import annotations

import asyncio

import pytest
import structlog
from structlog.testing import capture_logs

from thermosentry.detection.channels import (
    CallbackChannel,
    LogChannel,
    SoundChannel,
    sound_type_for,
)
from thermosentry.detection.channels import log_channel
from thermosentry.detection.dispatcher import NotificationDispatcher
from thermosentry.models.alerts import (
    AlertLocation,
    AlertPriority,
    NotificationMethod,
    ThermalAlert,
    ThermalAlertType,
)


def make_alert(alert_id: str = "hot-0-0",
               priority: AlertPriority = AlertPriority.HIGH) -> ThermalAlert:
    return ThermalAlert(
        id=alert_id,
        rule_id="hot",
        type=ThermalAlertType.HIGH_TEMPERATURE,
        priority=priority,
        timestamp=1500,
        message="High temperature detected: 85.0°C",
        location=AlertLocation(x=12, y=11),
        temperature=85.0,
    )


class FailingChannel:
    async def dispatch(self, alert):
        raise ConnectionError("smtp unavailable")


class TestChannels:
    def test_callback_accepts_sync_and_async(self):
        received = []

        async def async_callback(alert):
            received.append(("async", alert.id))

        async def scenario():
            await CallbackChannel(lambda a: received.append(("sync", a.id))).dispatch(make_alert())
            await CallbackChannel(async_callback).dispatch(make_alert())

        asyncio.run(scenario())
        assert received == [("sync", "hot-0-0"), ("async", "hot-0-0")]

    def test_sound_cue_by_priority(self):
        played = []
        channel = SoundChannel(lambda sound, alert: played.append(sound))

        asyncio.run(channel.dispatch(make_alert(priority=AlertPriority.CRITICAL)))
        asyncio.run(channel.dispatch(make_alert(priority=AlertPriority.LOW)))

        assert played == ["alarm-critical", "beep-low"]

    @pytest.mark.parametrize("priority,expected", [
        (AlertPriority.CRITICAL, "alarm-critical"),
        (AlertPriority.HIGH, "alarm-high"),
        (AlertPriority.MEDIUM, "beep-medium"),
        (AlertPriority.LOW, "beep-low"),
    ])
    def test_sound_types(self, priority, expected):
        assert sound_type_for(priority) == expected

    def test_log_channel_warns_with_frame_timestamp(self, monkeypatch):
        with capture_logs() as logs:
            monkeypatch.setattr(log_channel, "logger", structlog.get_logger("log_channel_test"))
            for priority in AlertPriority:
                asyncio.run(LogChannel().dispatch(make_alert(priority=priority)))

        assert len(logs) == len(AlertPriority)
        assert {entry["log_level"] for entry in logs} == {"warning"}
        assert all(entry["event"] == "thermal_alert" for entry in logs)
        assert [entry["priority"] for entry in logs] == [p.value for p in AlertPriority]
        assert all(entry["alert_timestamp"] == 1500 for entry in logs)


class TestNotificationDispatcher:
    def test_submit_then_drain(self):
        popups = []
        dispatcher = NotificationDispatcher(channels={
            NotificationMethod.POPUP: CallbackChannel(popups.append),
            NotificationMethod.LOG: LogChannel(),
        })

        assert dispatcher.submit(make_alert(), [NotificationMethod.POPUP, NotificationMethod.LOG])
        assert dispatcher.pending == 1
        assert popups == []

        assert asyncio.run(dispatcher.drain()) == 1
        assert [a.id for a in popups] == ["hot-0-0"]
        assert dispatcher.pending == 0

    def test_submit_without_methods(self):
        dispatcher = NotificationDispatcher()
        assert not dispatcher.submit(make_alert(), [])
        assert dispatcher.pending == 0

    def test_queue_overflow_drops(self):
        dispatcher = NotificationDispatcher(max_queue_size=1)

        assert dispatcher.submit(make_alert("a"), [NotificationMethod.LOG])
        assert not dispatcher.submit(make_alert("b"), [NotificationMethod.LOG])
        assert dispatcher.dropped_count == 1

    def test_failing_channel_isolated(self):
        popups = []
        dispatcher = NotificationDispatcher(channels={
            NotificationMethod.EMAIL: FailingChannel(),
            NotificationMethod.POPUP: CallbackChannel(popups.append),
        })

        delivered = asyncio.run(dispatcher.deliver(
            make_alert(),
            [NotificationMethod.EMAIL, NotificationMethod.POPUP, NotificationMethod.SOUND],
        ))

        assert delivered == 1
        assert len(popups) == 1

    def test_run_loop_delivers_until_stopped(self):
        popups = []
        dispatcher = NotificationDispatcher(channels={
            NotificationMethod.POPUP: CallbackChannel(popups.append),
        })

        async def scenario():
            stop = asyncio.Event()
            task = asyncio.create_task(dispatcher.run(stop, poll_interval=0.01))
            await asyncio.sleep(0)
            dispatcher.submit(make_alert("a"), [NotificationMethod.POPUP])
            await asyncio.get_running_loop().run_in_executor(
                None, dispatcher.submit, make_alert("b"), [NotificationMethod.POPUP]
            )
            await asyncio.sleep(0.05)
            stop.set()
            await task

        asyncio.run(scenario())
        assert sorted(a.id for a in popups) == ["a", "b"]

    def test_channel_registration(self):
        dispatcher = NotificationDispatcher()
        dispatcher.add_channel(NotificationMethod.LOG, LogChannel())

        assert NotificationMethod.LOG in dispatcher.channels
        assert dispatcher.remove_channel(NotificationMethod.LOG)
        assert not dispatcher.remove_channel(NotificationMethod.LOG)
