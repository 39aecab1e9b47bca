"""
Rolling sample windows.

Bounded FIFO buffers for the range controller's temperature history and
frame history. Oldest entries are evicted first.

Classes:
    SampleWindow: Rolling window of scalar temperature samples
"""

from collections import deque
from typing import Deque, Iterable, List, Optional

from thermosentry.metrics.frame_stats import FrameStatistics, compute_statistics


class SampleWindow:
    """
    Rolling window of temperature samples.

    Example:
        >>> window = SampleWindow(max_size=3)
        >>> window.extend([1.0, 2.0, 3.0, 4.0])
        >>> window.values()
        [2.0, 3.0, 4.0]
    """

    def __init__(self, max_size: int = 1000) -> None:
        """
        Initialize the window.

        Args:
            max_size: Maximum number of samples kept.

        Raises:
            ValueError: If max_size < 1.
        """
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")

        self.max_size = max_size
        self.buffer: Deque[float] = deque(maxlen=max_size)

    def extend(self, values: Iterable[float]) -> None:
        """Append samples, evicting the oldest beyond max_size."""
        self.buffer.extend(float(v) for v in values)

    def values(self) -> List[float]:
        return list(self.buffer)

    def statistics(self) -> Optional[FrameStatistics]:
        """Summary statistics of the whole window."""
        return compute_statistics(list(self.buffer))

    def reset(self) -> None:
        self.buffer.clear()

    def __len__(self) -> int:
        return len(self.buffer)

    def __repr__(self) -> str:
        return f"SampleWindow(samples={len(self.buffer)}/{self.max_size})"
