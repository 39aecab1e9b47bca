"""
Notification dispatcher for fanning alerts out to delivery channels.

This module provides the NotificationDispatcher class which routes each
triggered alert to the channels named by its rule's notification methods.

Key Features:
    - Non-blocking ``submit`` for the frame-processing path
    - Bounded queue; overflow is logged and dropped
    - Per-channel failure isolation
    - Continuous delivery loop for long-running services

Example:
    >>> dispatcher = NotificationDispatcher(
    ...     channels={
    ...         NotificationMethod.LOG: LogChannel(),
    ...         NotificationMethod.POPUP: CallbackChannel(show_popup),
    ...     },
    ... )
    >>> dispatcher.submit(alert, [NotificationMethod.LOG, NotificationMethod.POPUP])
    >>> await dispatcher.drain()
"""

import asyncio
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

import structlog

from thermosentry.models.alerts import NotificationMethod, ThermalAlert

logger = structlog.get_logger(__name__)


DEFAULT_QUEUE_SIZE = 1024

Notification = Tuple[ThermalAlert, List[NotificationMethod]]


class AlertChannel(Protocol):
    """
    Protocol for alert notification channels.

    Any channel implementation must support this async method.
    """

    async def dispatch(self, alert: ThermalAlert) -> None:
        """Deliver an alert."""
        ...


class NotificationDispatcher:
    """
    Routes alerts to notification channels.

    ``submit`` only enqueues, so it is safe to call while a frame is being
    processed. Delivery happens in ``drain`` or in the ``run`` loop.

    Attributes:
        channels: Mapping of notification method to channel.
        max_queue_size: Capacity of the pending-notification queue.
        dropped_count: Notifications discarded because the queue was full.
    """

    def __init__(
        self,
        channels: Optional[Dict[NotificationMethod, AlertChannel]] = None,
        max_queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            channels: Mapping of notification method to channel instance.
            max_queue_size: Maximum number of pending notifications.
        """
        self.channels: Dict[NotificationMethod, AlertChannel] = dict(channels or {})
        self.max_queue_size = max_queue_size
        self.dropped_count = 0
        self._queue: "asyncio.Queue[Notification]" = asyncio.Queue(maxsize=max_queue_size)
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        logger.info(
            "notification_dispatcher_initialized",
            available_channels=[m.value for m in self.channels],
            max_queue_size=max_queue_size,
        )

    def submit(self, alert: ThermalAlert, methods: Iterable[NotificationMethod]) -> bool:
        """
        Queue an alert for delivery without blocking.

        When a ``run`` loop is active on another thread, the item is handed
        to that loop thread-safely.

        Args:
            alert: The alert to deliver.
            methods: Delivery methods configured on the alert's rule.

        Returns:
            bool: True if the alert was queued (or handed to the loop).
        """
        item: Notification = (alert, list(methods))
        if not item[1]:
            return False

        loop = self._loop
        if loop is not None and loop.is_running() and not _is_current_loop(loop):
            loop.call_soon_threadsafe(self._enqueue, item)
            return True

        return self._enqueue(item)

    def _enqueue(self, item: Notification) -> bool:
        try:
            self._queue.put_nowait(item)
            return True
        except asyncio.QueueFull:
            self.dropped_count += 1
            logger.warning(
                "notification_queue_full",
                alert_id=item[0].id,
                dropped_count=self.dropped_count,
            )
            return False

    async def deliver(self, alert: ThermalAlert, methods: Iterable[NotificationMethod]) -> int:
        """
        Deliver one alert to each requested channel.

        Args:
            alert: The alert to deliver.
            methods: Delivery methods to use.

        Returns:
            int: Number of channels the alert was delivered to.
        """
        methods = list(methods)
        delivered = 0

        for method in methods:
            channel = self.channels.get(method)
            if channel is None:
                logger.debug(
                    "channel_not_configured",
                    method=method.value,
                    alert_id=alert.id,
                )
                continue

            try:
                await channel.dispatch(alert)
                delivered += 1
            except Exception as e:
                logger.error(
                    "channel_dispatch_failed",
                    method=method.value,
                    alert_id=alert.id,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        logger.debug(
            "alert_dispatch_complete",
            alert_id=alert.id,
            dispatched_to=delivered,
            total_channels=len(methods),
        )
        return delivered

    async def drain(self) -> int:
        """
        Deliver everything currently queued.

        Returns:
            int: Number of alerts taken off the queue.
        """
        processed = 0
        while True:
            try:
                alert, methods = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            await self.deliver(alert, methods)
            self._queue.task_done()
            processed += 1
        return processed

    async def run(self, stop_event: asyncio.Event, poll_interval: float = 0.5) -> None:
        """
        Deliver notifications until ``stop_event`` is set.

        Pending notifications are drained before returning.

        Args:
            stop_event: Event that ends the loop.
            poll_interval: Seconds between stop checks while idle.
        """
        self._loop = asyncio.get_running_loop()
        logger.info("notification_dispatcher_started")

        try:
            while not stop_event.is_set():
                try:
                    alert, methods = await asyncio.wait_for(
                        self._queue.get(),
                        timeout=poll_interval,
                    )
                except asyncio.TimeoutError:
                    continue
                await self.deliver(alert, methods)
                self._queue.task_done()

            await self.drain()
        finally:
            self._loop = None
            logger.info("notification_dispatcher_stopped", dropped_count=self.dropped_count)

    def add_channel(self, method: NotificationMethod, channel: AlertChannel) -> None:
        """Register (or replace) the channel for a method."""
        self.channels[method] = channel
        logger.info("channel_added", method=method.value)

    def remove_channel(self, method: NotificationMethod) -> bool:
        """
        Remove the channel for a method.

        Returns:
            bool: True if a channel was removed.
        """
        if method in self.channels:
            del self.channels[method]
            logger.info("channel_removed", method=method.value)
            return True
        return False

    @property
    def pending(self) -> int:
        return self._queue.qsize()


def _is_current_loop(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False
