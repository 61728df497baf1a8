"""
Throttle gate for calls to the AI provider.

Requests are tracked in a sliding window of timestamps. The limiter
never blocks: callers ask ``should_throttle()`` and, when it says yes,
take their non-AI fallback instead of calling the provider.
"""

import logging
import time
from collections import deque
from typing import Callable, Optional

from .config import config

logger = logging.getLogger(__name__)


class RateLimiter:
    """Minimum spacing plus a per-window ceiling on provider requests."""

    def __init__(
        self,
        min_interval: float = 4.0,
        max_requests: int = 15,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.min_interval = min_interval
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._requests: deque[float] = deque()
        self._last_request: Optional[float] = None

    def _prune(self, now: float) -> None:
        while self._requests and now - self._requests[0] >= self.window:
            self._requests.popleft()

    @property
    def request_count(self) -> int:
        """Requests inside the current window."""
        self._prune(self._clock())
        return len(self._requests)

    def seconds_until_ready(self) -> float:
        """How long until ``should_throttle()`` would return False."""
        now = self._clock()
        self._prune(now)
        wait = 0.0
        if self._last_request is not None:
            wait = max(wait, self.min_interval - (now - self._last_request))
        if len(self._requests) >= self.max_requests:
            wait = max(wait, self.window - (now - self._requests[0]))
        return max(wait, 0.0)

    def should_throttle(self) -> bool:
        now = self._clock()
        self._prune(now)

        if self._last_request is not None and now - self._last_request < self.min_interval:
            return True
        if len(self._requests) >= self.max_requests:
            return True
        return False

    def record_request(self) -> None:
        now = self._clock()
        self._prune(now)
        self._requests.append(now)
        self._last_request = now

    def reset(self) -> None:
        self._requests.clear()
        self._last_request = None


_default_limiter: Optional[RateLimiter] = None


def default_limiter() -> RateLimiter:
    """
    Process-wide limiter built from config.

    Everything that uses it shares one budget; pass a dedicated
    RateLimiter to isolate sessions.
    """
    global _default_limiter
    if _default_limiter is None:
        _default_limiter = RateLimiter(
            min_interval=config.AI_MIN_REQUEST_INTERVAL,
            max_requests=config.AI_MAX_REQUESTS_PER_MINUTE,
            window=config.AI_RATE_WINDOW,
        )
    return _default_limiter
