"""
Search support: rate limiting and retried backend calls in one module.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional, TypeVar

from searchmesh.errors import TRANSIENT_ERRORS, ExhaustedRetriesError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ----- Rate limiter -----


class RateLimiter:
    """
    Minimum-interval pacing gate for one logical caller.

    Every acquisition waits until at least 1 / calls_per_second seconds have
    passed since the previous acquisition through this instance. The
    check-and-update runs under a lock, so concurrent callers queue instead
    of racing on the baseline.
    """

    def __init__(self, calls_per_second: float):
        if calls_per_second <= 0:
            raise ValueError("calls_per_second must be positive")
        self.interval = 1.0 / calls_per_second
        self._last_call: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def last_call(self) -> Optional[float]:
        return self._last_call

    async def wait(self) -> float:
        """Suspend until the next call is allowed. Returns seconds waited."""
        async with self._lock:
            started = time.monotonic()
            if self._last_call is not None:
                # asyncio timers may fire a little early; loop until the gap holds
                while True:
                    remaining = self._last_call + self.interval - time.monotonic()
                    if remaining <= 0:
                        break
                    await asyncio.sleep(remaining)
            self._last_call = time.monotonic()
            return self._last_call - started

    @asynccontextmanager
    async def acquire(self):
        await self.wait()
        yield


# ----- Retrying client -----


class RetryingClient:
    """
    Rate-limited, bounded, fixed-delay retry around one backend's operations.

    Each attempt first passes the rate limiter. Transient failures
    (NetworkError, RateLimitError) are retried after `retry_delay` seconds
    until `max_retries` retries are spent, then ExhaustedRetriesError is
    raised. Other exceptions propagate on the first failure.
    """

    def __init__(
        self,
        name: str,
        rate_limiter: RateLimiter,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.name = name
        self.rate_limiter = rate_limiter
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    async def call(self, operation: Callable[[], Awaitable[T]]) -> T:
        retries_left = self.max_retries
        attempts = 0
        while True:
            await self.rate_limiter.wait()
            attempts += 1
            try:
                return await operation()
            except TRANSIENT_ERRORS as e:
                if retries_left <= 0:
                    logger.error(f"{self.name}: giving up after {attempts} attempts: {e}")
                    raise ExhaustedRetriesError(self.name, e, attempts) from e
                retries_left -= 1
                logger.warning(
                    f"{self.name}: attempt {attempts} failed ({e}); "
                    f"retrying in {self.retry_delay}s, {retries_left} retries left"
                )
                await self._sleep(self.retry_delay)
