"""
Hysteresis latch for triggered rule locations.

Once a location triggers, it stays latched until the metric crosses back
past the release level (threshold minus or plus hysteresis, depending on the
rule type). The engine re-runs the detector at the release level each frame
and passes the resulting regions here; latched locations outside all of them
re-arm.
"""

from typing import Dict, Iterable, List

import structlog

from thermosentry.models.alerts import AlertLocation
from thermosentry.models.frame import Region

logger = structlog.get_logger(__name__)


class HysteresisLatch:
    """
    Latched location keys and their alert locations.

    Example:
        >>> latch = HysteresisLatch()
        >>> latch.latch("rule:5:5", AlertLocation(x=5, y=5))
        >>> latch.release_outside("rule:", [Region(x_min=0, y_min=0, x_max=9, y_max=9)])
        []
        >>> latch.release_outside("rule:", [])
        ['rule:5:5']
    """

    def __init__(self) -> None:
        self._latched: Dict[str, AlertLocation] = {}

    def latch(self, key: str, location: AlertLocation) -> None:
        self._latched[key] = location

    def follow(self, key: str, location: AlertLocation) -> None:
        """Move a latched key to where its detection is now; no-op if not latched."""
        if key in self._latched:
            self._latched[key] = location

    def is_latched(self, key: str) -> bool:
        return key in self._latched

    def release_outside(self, prefix: str, regions: Iterable[Region]) -> List[str]:
        """
        Re-arm latched keys of one rule that lie outside every region.

        Args:
            prefix: Key prefix of the rule.
            regions: Regions still beyond the release level.

        Returns:
            List[str]: Keys that were released.
        """
        regions = list(regions)
        released = [
            key for key, location in self._latched.items()
            if key.startswith(prefix)
            and not any(region.contains(location.x, location.y) for region in regions)
        ]
        for key in released:
            del self._latched[key]

        if released:
            logger.debug("hysteresis_released", prefix=prefix, count=len(released))
        return released

    def clear(self, prefix: str = "") -> int:
        """Release every key with ``prefix`` (all keys by default)."""
        keys = [k for k in self._latched if k.startswith(prefix)]
        for key in keys:
            del self._latched[key]
        return len(keys)

    def __len__(self) -> int:
        return len(self._latched)
