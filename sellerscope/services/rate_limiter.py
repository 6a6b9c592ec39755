"""Sliding-window rate limiter for outbound queries.

The limiter never sleeps or queues. Callers that are denied take another
path instead of retrying against the limiter.
"""

import logging
import time
from collections import deque
from collections.abc import Callable

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Admit at most ``max_requests`` recorded requests per ``window`` seconds."""

    def __init__(
        self,
        max_requests: int = 30,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")

        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._timestamps: deque[float] = deque()

    def _prune(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.window:
            self._timestamps.popleft()

    def can_proceed(self) -> bool:
        """Check whether one more request fits in the current window.

        Returns:
            True if the pruned window holds fewer than ``max_requests`` entries.
        """
        self._prune(self._clock())
        allowed = len(self._timestamps) < self.max_requests
        if not allowed:
            logger.debug(
                f"Rate limit reached: {len(self._timestamps)}/{self.max_requests} "
                f"in {self.window:.0f}s"
            )
        return allowed

    def record(self) -> None:
        """Record a request issued now."""
        self._timestamps.append(self._clock())

    @property
    def in_window(self) -> int:
        """Requests currently counted against the window."""
        self._prune(self._clock())
        return len(self._timestamps)
