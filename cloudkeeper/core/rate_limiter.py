"""
Rate Limiter Module
===================

Thread-safe token bucket shared by the worker threads of one batch.

Every mutating task acquires a token before it is submitted, which caps
the request rate against the EC2 API at ``rate`` operations per second
regardless of how many workers are running.

Example
-------
>>> limiter = TokenBucketRateLimiter(rate=3.0)
>>> for image in images:
...     limiter.acquire()
...     executor.submit(deregister, image)
"""

from __future__ import annotations

import math
import threading
import time
from typing import Any, Callable, Optional

DEFAULT_RATE = 3.0


class TokenBucketRateLimiter:
    """
    Token bucket rate limiter.

    Parameters
    ----------
    rate : float, default=3.0
        Tokens added per second.
    capacity : int, optional
        Maximum tokens held. Defaults to ``rate`` rounded up, i.e. one
        second worth of burst.
    clock : callable, default=time.monotonic
        Returns the current time in seconds.
    sleep : callable, default=time.sleep
        Used to wait for the next token.

    Attributes
    ----------
    rate : float
        Refill rate in tokens per second.
    capacity : int
        Bucket size.
    """

    def __init__(
        self,
        rate: float = DEFAULT_RATE,
        capacity: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        self.rate = rate
        self.capacity = capacity if capacity is not None else max(1, math.ceil(rate))
        if self.capacity < 1:
            raise ValueError("capacity must be at least 1")

        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._tokens = float(self.capacity)
        self._last_refill = clock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(float(self.capacity), self._tokens + elapsed * self.rate)
        self._last_refill = now

    @property
    def available_tokens(self) -> float:
        """Current number of tokens in the bucket."""
        with self._lock:
            self._refill()
            return self._tokens

    def try_acquire(self) -> bool:
        """Take a token if one is available. Never blocks."""
        with self._lock:
            self._refill()
            if self._tokens >= 1:
                self._tokens -= 1
                return True
            return False

    def acquire(self) -> None:
        """Block until a token is available, then take it."""
        while True:
            with self._lock:
                self._refill()
                if self._tokens >= 1:
                    self._tokens -= 1
                    return
                wait = (1 - self._tokens) / self.rate
            self._sleep(wait)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"TokenBucketRateLimiter(rate={self.rate}, capacity={self.capacity})"
