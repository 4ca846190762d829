"""Process-wide token-bucket rate limiter shared by the public auth routes."""

import logging
import threading
import time
from collections.abc import Callable

from fastapi import HTTPException, Request

from brote.core.errors import TooManyRequestsError

logger = logging.getLogger(__name__)


class TokenBucket:
    """
    Token bucket holding up to `capacity` tokens, refilled continuously at
    `refill_rate` tokens per second. One bucket is shared by every caller.

    Parameters
    ----------
    capacity : int
        Burst size; the bucket starts full.
    refill_rate : float
        Tokens added per second.
    clock : callable
        Monotonic time source in seconds (injectable for tests).
    """

    def __init__(
        self,
        capacity: int = 3,
        refill_rate: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if refill_rate <= 0:
            raise ValueError("refill_rate must be greater than 0")
        self.capacity = capacity
        self.refill_rate = refill_rate
        self._clock = clock
        self._tokens = float(capacity)
        self._last = clock()
        self._lock = threading.Lock()

    def _refill(self, now: float) -> None:
        elapsed = max(0.0, now - self._last)
        self._tokens = min(float(self.capacity), self._tokens + elapsed * self.refill_rate)
        self._last = now

    def allow(self) -> bool:
        """Consume one token if available. Returns False when the bucket is empty."""
        with self._lock:
            self._refill(self._clock())
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return True
            return False

    @property
    def available(self) -> float:
        with self._lock:
            self._refill(self._clock())
            return self._tokens


def enforce_rate_limit(request: Request) -> None:
    """Dependency: consume from the app's shared bucket or raise 429."""
    bucket: TokenBucket = request.app.state.rate_limiter
    if not bucket.allow():
        logger.warning(
            "Rate limit exceeded",
            extra={"method": request.method, "path": request.url.path},
        )
        raise HTTPException(
            status_code=TooManyRequestsError.status_code,
            detail="Too many requests, try again later.",
        )
