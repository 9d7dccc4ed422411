"""
Bounded rolling history of volume samples for one symbol.
"""
from collections import deque
from typing import Deque, List


class VolumeHistory:
    """
    FIFO of recent volume values, oldest first.

    Holds at most `capacity` values; pushing into a full history drops the
    oldest one. Owned by a single monitor task, so there is no locking.
    """

    def __init__(self, capacity: int = 24):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._values: Deque[float] = deque(maxlen=capacity)

    def push(self, value: float):
        self._values.append(float(value))

    def average(self) -> float:
        """Mean of the stored values, 0.0 when empty."""
        if not self._values:
            return 0.0
        return sum(self._values) / len(self._values)

    def size(self) -> int:
        return len(self._values)

    def values(self) -> List[float]:
        return list(self._values)

    def clear(self):
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"VolumeHistory(capacity={self.capacity}, values={list(self._values)!r})"
