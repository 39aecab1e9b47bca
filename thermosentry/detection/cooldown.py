"""
Cancelable cooldown scheduling.

A ``CooldownScheduler`` is a delayed-expiry table: each triggered location
key gets an entry that expires at ``trigger_time + cooldown_period``. The
engine advances it with frame timestamps, so expiry is driven by the data
clock rather than by wall-clock timers, and entries can be cancelled per key,
per rule, or all at once.

Example:
    >>> scheduler = CooldownScheduler()
    >>> scheduler.schedule("rule:4:4", now=0, duration=30000)
    >>> scheduler.is_cooling("rule:4:4", now=10000)
    True
    >>> scheduler.is_cooling("rule:4:4", now=31000)
    False
"""

import heapq
from typing import Dict, List, Optional, Tuple

import structlog

logger = structlog.get_logger(__name__)


class CooldownScheduler:
    """
    Delayed-expiry table for per-location cooldowns.

    Entries live in a dict (key -> expiry) with a min-heap of
    ``(expiry, key)`` for ordered expiry. Cancelled or rescheduled entries
    leave stale heap items behind; they are skipped on pop.
    """

    def __init__(self) -> None:
        self._expiries: Dict[str, int] = {}
        self._heap: List[Tuple[int, str]] = []

    def schedule(self, key: str, now: int, duration: int) -> Optional[int]:
        """
        Start (or restart) the cooldown of a key.

        Args:
            key: Location key.
            now: Trigger timestamp in milliseconds.
            duration: Cooldown period in milliseconds.

        Returns:
            Optional[int]: Expiry timestamp, or None if ``duration`` is zero.
        """
        if duration <= 0:
            self._expiries.pop(key, None)
            return None

        expires_at = now + duration
        self._expiries[key] = expires_at
        heapq.heappush(self._heap, (expires_at, key))
        return expires_at

    def expire(self, now: int) -> List[str]:
        """
        Drop every entry whose expiry is at or before ``now``.

        Returns:
            List[str]: Keys that re-armed.
        """
        expired = []
        while self._heap and self._heap[0][0] <= now:
            expires_at, key = heapq.heappop(self._heap)
            if self._expiries.get(key) == expires_at:
                del self._expiries[key]
                expired.append(key)

        if expired:
            logger.debug("cooldowns_expired", count=len(expired), now=now)
        return expired

    def is_cooling(self, key: str, now: int) -> bool:
        """Check whether a key is still inside its cooldown window."""
        expires_at = self._expiries.get(key)
        return expires_at is not None and now < expires_at

    def remaining(self, key: str, now: int) -> int:
        """Milliseconds left on a key's cooldown (0 if none)."""
        expires_at = self._expiries.get(key)
        if expires_at is None:
            return 0
        return max(expires_at - now, 0)

    def cancel(self, key: str) -> bool:
        """Cancel one key. Returns True if an entry existed."""
        return self._expiries.pop(key, None) is not None

    def cancel_prefix(self, prefix: str) -> int:
        """Cancel every key starting with ``prefix``. Returns the count."""
        keys = [k for k in self._expiries if k.startswith(prefix)]
        for key in keys:
            del self._expiries[key]
        return len(keys)

    def cancel_all(self) -> int:
        """Cancel every pending cooldown. Returns the count."""
        count = len(self._expiries)
        self._expiries.clear()
        self._heap.clear()
        return count

    def __len__(self) -> int:
        return len(self._expiries)

    def __contains__(self, key: str) -> bool:
        return key in self._expiries
