"""
Persistence tracker for duration-gated alert rules.

This module provides the PersistenceTracker class which tracks how long a
violation has been continuously present at a rule location.

Key Features:
    - Records the frame timestamp when a violation first appears
    - Clears tracking for locations that stop violating
    - Returns duration in milliseconds for min_duration checks
    - Location tracking that keeps one key for a drifting hot spot

Example:
    >>> tracker = PersistenceTracker()
    >>> key = build_location_key("high-temp-critical", (12.4, 7.6))
    >>> tracker.track(key, True, 1000)
    >>> tracker.get_duration(key, 2500)
    1500
"""

import math
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import structlog

from thermosentry.models.frame import Region

logger = structlog.get_logger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounded up."""
    return int(math.floor(value + 0.5))


def build_location_key(
    rule_id: str,
    centroid: Tuple[float, float],
    grid: float = 1.0,
) -> str:
    """
    Build the gating key for a rule at a cluster location.

    The centroid is divided by ``grid`` and rounded, so nearby repeated
    detections share one key.

    Args:
        rule_id: The rule identifier.
        centroid: Cluster centroid (x, y) in pixels.
        grid: Cell size in pixels.

    Returns:
        str: Key in format "rule_id:cell_x:cell_y".

    Example:
        >>> build_location_key("anomaly-detection", (31.2, 9.8), grid=4)
        'anomaly-detection:8:2'
    """
    cell_x = round_half_up(centroid[0] / grid)
    cell_y = round_half_up(centroid[1] / grid)
    return f"{rule_id}:{cell_x}:{cell_y}"


def rule_prefix(rule_id: str) -> str:
    """Prefix shared by every location key of a rule."""
    return f"{rule_id}:"


class PersistenceTracker:
    """
    Tracks how long violations have been continuously present.

    Used for rules with a ``min_duration``: when a location first violates,
    the tracker records the frame timestamp. When the location stops
    violating, the record is cleared. Durations are measured on the frame
    clock, so replayed streams gate identically to live ones.

    Attributes:
        _start_times: Mapping of location keys to start timestamps (ms).
    """

    def __init__(self) -> None:
        self._start_times: Dict[str, int] = {}

        logger.debug("persistence_tracker_initialized")

    def track(self, location_key: str, is_met: bool, timestamp: int) -> Optional[int]:
        """
        Track a violation state change.

        Args:
            location_key: Gating key of the location.
            is_met: Whether the location violates in this frame.
            timestamp: Frame timestamp in milliseconds.

        Returns:
            Optional[int]: The violation start time if tracking, None otherwise.
        """
        if is_met:
            if location_key not in self._start_times:
                self._start_times[location_key] = timestamp
                logger.debug(
                    "persistence_tracking_started",
                    location_key=location_key,
                    start_time=timestamp,
                )
            return self._start_times[location_key]

        if location_key in self._start_times:
            started = self._start_times.pop(location_key)
            logger.debug(
                "persistence_tracking_cleared",
                location_key=location_key,
                was_tracking_since=started,
            )
        return None

    def get_duration(self, location_key: str, current_time: int) -> Optional[int]:
        """
        Get how long a location has been continuously violating.

        Returns:
            Optional[int]: Duration in milliseconds, or None if not tracking.
        """
        start = self._start_times.get(location_key)
        if start is None:
            return None
        return current_time - start

    def is_persisted(self, location_key: str, required_ms: int, current_time: int) -> bool:
        """
        Check whether a violation has lasted at least ``required_ms``.

        Example:
            >>> tracker.track(key, True, 0)
            >>> tracker.is_persisted(key, 1000, 999)
            False
            >>> tracker.is_persisted(key, 1000, 1000)
            True
        """
        duration = self.get_duration(location_key, current_time)
        return duration is not None and duration >= required_ms

    def retain(self, prefix: str, seen: Iterable[str]) -> None:
        """
        Clear every key under ``prefix`` that was not seen this frame.

        Args:
            prefix: Key prefix of one rule.
            seen: Keys that violated in the current frame.
        """
        keep = set(seen)
        stale = [
            key for key in self._start_times
            if key.startswith(prefix) and key not in keep
        ]
        for key in stale:
            del self._start_times[key]
        if stale:
            logger.debug("persistence_tracking_expired", prefix=prefix, count=len(stale))

    def clear(self, prefix: Optional[str] = None) -> None:
        """
        Clear tracking.

        Args:
            prefix: Only clear keys with this prefix; clears everything if None.
        """
        if prefix is None:
            self._start_times.clear()
            return
        for key in [k for k in self._start_times if k.startswith(prefix)]:
            del self._start_times[key]

    def is_tracking(self, location_key: str) -> bool:
        return location_key in self._start_times

    def __len__(self) -> int:
        return len(self._start_times)


class LocationTracker:
    """
    Keeps the last seen geometry of every tracked rule location.

    A hot spot's centroid wanders by a pixel or so as boundary pixels flicker
    around the threshold. Resolving detections against the tracked geometry
    keeps one location key for the spot, so persistence, latch and cooldown
    state follow it instead of restarting on every shift.

    A detection continues a tracked location when the tracked bounds contain
    the new centroid, or the new bounds contain the tracked centroid. When
    several tracked locations qualify the nearest centroid wins; each tracked
    location is continued by at most one detection per frame.

    Example:
        >>> tracker = LocationTracker()
        >>> tracker.resolve("hot", [((11.5, 11.0), Region(x_min=10, y_min=10, x_max=13, y_max=13))])
        ['hot:12:11']
        >>> tracker.resolve("hot", [((12.0, 11.0), Region(x_min=10, y_min=10, x_max=14, y_max=13))])
        ['hot:12:11']
    """

    def __init__(self, grid: float = 1.0) -> None:
        self.grid = grid
        self._locations: Dict[str, Dict[str, Tuple[Tuple[float, float], Region]]] = {}

    def resolve(
        self,
        rule_id: str,
        observations: Sequence[Tuple[Tuple[float, float], Region]],
    ) -> List[str]:
        """
        Assign a location key to each detection of one rule.

        The geometry of every returned key is updated to the new observation.

        Args:
            rule_id: The rule identifier.
            observations: (centroid, bounds) per detection, in detection order.

        Returns:
            List[str]: One key per observation.
        """
        tracked = self._locations.setdefault(rule_id, {})
        claimed: Set[str] = set()
        keys: List[str] = []

        for centroid, bounds in observations:
            key = self._match(tracked, claimed, centroid, bounds)
            if key is None:
                key = build_location_key(rule_id, centroid, self.grid)
            else:
                logger.debug("location_continued", location_key=key, centroid=centroid)
            claimed.add(key)
            keys.append(key)

        for key, observation in zip(keys, observations):
            tracked[key] = observation
        return keys

    @staticmethod
    def _match(
        tracked: Dict[str, Tuple[Tuple[float, float], Region]],
        claimed: Set[str],
        centroid: Tuple[float, float],
        bounds: Region,
    ) -> Optional[str]:
        best_key = None
        best_distance = math.inf
        for key, (old_centroid, old_bounds) in tracked.items():
            if key in claimed:
                continue
            if not (old_bounds.contains(*centroid) or bounds.contains(*old_centroid)):
                continue
            distance = math.hypot(centroid[0] - old_centroid[0], centroid[1] - old_centroid[1])
            if distance < best_distance:
                best_key, best_distance = key, distance
        return best_key

    def retain(self, rule_id: str, keep: Callable[[str], bool]) -> None:
        """Forget locations of a rule for which ``keep`` returns False."""
        tracked = self._locations.get(rule_id)
        if not tracked:
            return
        for key in [k for k in tracked if not keep(k)]:
            del tracked[key]

    def clear(self, rule_id: Optional[str] = None) -> None:
        if rule_id is None:
            self._locations.clear()
        else:
            self._locations.pop(rule_id, None)

    def __len__(self) -> int:
        return sum(len(tracked) for tracked in self._locations.values())
