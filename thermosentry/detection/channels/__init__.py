"""
Alert notification channels.

This module contains implementations for the delivery methods an alert
rule can name. The core does not render popups or send mail itself; those
channels wrap callables supplied by the embedding application.

Components:
    log_channel: Structured log output for alerts
    callback: Callable-backed popup/email channel and sound-cue channel

Example:
    >>> from thermosentry.detection.channels import LogChannel, SoundChannel
    >>>
    >>> await LogChannel().dispatch(alert)
    >>> await SoundChannel(player).dispatch(alert)
"""

from thermosentry.detection.channels.log_channel import LogChannel
from thermosentry.detection.channels.callback import (
    CallbackChannel,
    SoundChannel,
    SOUND_TYPES,
    sound_type_for,
)

__all__ = [
    # Log
    "LogChannel",
    # Callback
    "CallbackChannel",
    "SoundChannel",
    "SOUND_TYPES",
    "sound_type_for",
]
