"""Bounded position history drawn as a fading path behind each planet."""

from collections import deque
from typing import Deque, Iterable, Iterator

import numpy as np

from ..config import TRAIL_LENGTH
from ..errors import require_count


class TrailBuffer:
    """
    Fixed-capacity FIFO of the most recent positions of one body.

    Once full, every push evicts the oldest point. The capacity is set at
    construction and cannot be changed afterwards.
    """

    def __init__(self, capacity: int = TRAIL_LENGTH):
        capacity = require_count(capacity, "Trail capacity")
        self._points: Deque[np.ndarray] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._points.maxlen

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[np.ndarray]:
        """Iterate from oldest to newest."""
        return iter(self._points)

    def push(self, point) -> None:
        """Append a copy of ``point`` (3,) as the newest entry."""
        point = np.array(point, dtype=np.float64)
        if point.shape != (3,):
            raise ValueError(f"Trail points must have shape (3,), got {point.shape}")
        point.setflags(write=False)
        self._points.append(point)

    def extend(self, points: Iterable) -> None:
        """Push several points, oldest first."""
        for point in points:
            self.push(point)

    def newest(self) -> np.ndarray:
        """Most recent point; raises IndexError when empty."""
        return self._points[-1]

    def points(self, newest_first: bool = False) -> np.ndarray:
        """
        Return the stored points as an array for drawing a connected line.

        Args:
            newest_first: If True, order from newest to oldest; otherwise
                chronologically (oldest first)

        Returns:
            Array of shape (len(self), 3)
        """
        if not self._points:
            return np.empty((0, 3), dtype=np.float64)
        stacked = np.stack(self._points)
        return stacked[::-1].copy() if newest_first else stacked

    def clear(self) -> None:
        self._points.clear()
