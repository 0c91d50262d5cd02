"""
Per-request deadline shared by every I/O stage of the pipeline.
"""

import time
from typing import Callable, Optional


class Deadline:
    """
    Absolute point in time a request must finish by.

    Args:
        seconds (float): Budget from now.
        clock (Callable[[], float], optional): Monotonic clock, injectable for tests.
    """

    def __init__(self, seconds: float, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._expires_at = self._clock() + seconds

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        return self.remaining() <= 0.0
