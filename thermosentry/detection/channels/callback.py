"""
Callback-backed notification channels.

Popup, email and sound delivery belong to the embedding application. These
channels adapt a plain callable (sync or async) to the channel protocol so
the application can plug in its own UI or mail transport.

Classes:
    CallbackChannel: Passes each alert to a callable
    SoundChannel: Maps alert priority to a sound cue and passes both on
"""

import inspect
from typing import Any, Callable, Dict

from thermosentry.models.alerts import AlertPriority, ThermalAlert

# Sound cue per priority
SOUND_TYPES: Dict[AlertPriority, str] = {
    AlertPriority.CRITICAL: "alarm-critical",
    AlertPriority.HIGH: "alarm-high",
    AlertPriority.MEDIUM: "beep-medium",
    AlertPriority.LOW: "beep-low",
}


def sound_type_for(priority: AlertPriority) -> str:
    """
    Sound cue for a priority.

    Example:
        >>> sound_type_for(AlertPriority.CRITICAL)
        'alarm-critical'
    """
    return SOUND_TYPES.get(priority, "beep-low")


async def _invoke(callback: Callable[..., Any], *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class CallbackChannel:
    """
    Channel that hands each alert to a callable.

    Example:
        >>> shown = []
        >>> channel = CallbackChannel(shown.append)
        >>> await channel.dispatch(alert)
    """

    def __init__(self, callback: Callable[[ThermalAlert], Any]) -> None:
        self.callback = callback

    async def dispatch(self, alert: ThermalAlert) -> None:
        await _invoke(self.callback, alert)


class SoundChannel:
    """
    Channel that plays a priority-dependent sound cue.

    The player receives ``(sound_type, alert)``.
    """

    def __init__(self, player: Callable[[str, ThermalAlert], Any]) -> None:
        self.player = player

    async def dispatch(self, alert: ThermalAlert) -> None:
        await _invoke(self.player, sound_type_for(alert.priority), alert)
