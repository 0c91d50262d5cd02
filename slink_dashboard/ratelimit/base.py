"""
Abstract base for shared rate-limit counter stores.

Responsibilities:
    - Define the single atomic operation the limiter needs: increment-and-check
    - Support easy substitution (Redis in production, a fake store in tests)

The store, not the caller, owns the counter and its window. Implementations
must make increment-and-compare atomic across every process sharing the
store; an in-process dictionary does not qualify outside tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

__all__ = ["BaseRateLimitStore", "RateLimitDecision"]


@dataclass(frozen=True)
class RateLimitDecision:
    """
    Outcome of one increment-and-check.

    Attributes:
        allowed (bool): Whether the request fits under the ceiling.
        count (int): Counter value after this increment (0 when limiting is off).
        limit (int): Ceiling applied (0 when limiting is off).
    """
    allowed: bool
    count: int = 0
    limit: int = 0

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)


class BaseRateLimitStore(ABC):
    """Abstract base for pluggable counter stores."""

    @abstractmethod
    def increment_and_check(
        self, key: str, ceiling: int, window_seconds: int, timeout: Optional[float] = None
    ) -> RateLimitDecision:  # pragma: no cover
        """
        Atomically count one request for `key` in the current window.

        Args:
            key (str): Counter key.
            ceiling (int): Maximum requests admitted per window.
            window_seconds (int): Fixed window length; the counter resets after it.
            timeout (Optional[float]): Seconds the store round-trip may take.

        Returns:
            RateLimitDecision: allowed=False once the count passes the ceiling.

        Raises:
            CollaboratorTimeout: If the store did not answer in time.
        """
        raise NotImplementedError
