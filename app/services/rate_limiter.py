"""
app/services/rate_limiter.py

Purpose: In-process sliding-window rate limiting

- Guards the public receipt email relay
- Keyed by authenticated user id or client address
- Keys with no hits left in the window are dropped
"""

import time
from typing import Callable, Dict, List

from app.core.exceptions import RateLimitExceededError


class RateLimiter:
    """
    Allows at most max_requests per key within window_seconds.
    """

    def __init__(self, max_requests: int, window_seconds: int = 3600, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, List[float]] = {}
        self._last_sweep = clock()

    def _sweep(self, now: float) -> None:
        """Drops every key whose newest hit fell out of the window."""
        expired = [key for key, hits in self._hits.items() if now - hits[-1] >= self.window_seconds]
        for key in expired:
            del self._hits[key]
        self._last_sweep = now

    def hit(self, key: str) -> None:
        """
        Records a request for key.

        Raises:
            RateLimitExceededError: The key already used its allowance in the window
        """
        now = self._clock()

        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)

        # Drop hits that fell out of the window
        hits = [t for t in self._hits.get(key, []) if now - t < self.window_seconds]

        if len(hits) >= self.max_requests:
            self._hits[key] = hits
            retry_after = int(self.window_seconds - (now - hits[0])) + 1
            minutes = max(1, retry_after // 60)
            raise RateLimitExceededError(
                f"Too many emails. Please try again in {minutes} minutes.",
                details={"retry_after_seconds": retry_after}
            )

        hits.append(now)
        self._hits[key] = hits

    @property
    def tracked_keys(self) -> int:
        return len(self._hits)
