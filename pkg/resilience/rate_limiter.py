"""
Rate Limiter implementation.

Token bucket used to pace outbound calls to rate-limited APIs.
"""
import asyncio
import time
from typing import Optional

from pkg.logger.logger import get_logger


logger = get_logger(__name__)


class RateLimitTimeout(Exception):
    """Raised when tokens could not be acquired before the deadline."""


class RateLimiter:
    """
    Token bucket rate limiter.

    Shopify's REST Admin API uses a leaky bucket of 40 requests refilled at
    2 per second, hence the defaults.

    Attributes:
        rate: Number of tokens added per second.
        capacity: Maximum number of tokens in the bucket.
    """

    def __init__(
        self,
        rate: float = 2.0,
        capacity: int = 40,
    ) -> None:
        """
        Initialize the rate limiter.

        Args:
            rate: Tokens per second.
            capacity: Maximum bucket capacity.

        Raises:
            ValueError: If rate or capacity is not positive.
        """
        if rate <= 0 or capacity <= 0:
            raise ValueError("rate and capacity must be positive")
        self.rate = rate
        self.capacity = capacity
        self._tokens = float(capacity)
        self._last_update = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self, tokens: int = 1) -> bool:
        """
        Try to take tokens without waiting.

        Returns:
            True if tokens were taken, False otherwise.
        """
        async with self._lock:
            self._refill()
            if self._tokens >= tokens:
                self._tokens -= tokens
                return True
            return False

    async def wait_and_acquire(
        self,
        tokens: int = 1,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Wait until tokens are available and take them.

        Args:
            tokens: Number of tokens to acquire.
            timeout: Maximum time to wait in seconds. None waits forever.

        Raises:
            RateLimitTimeout: If the timeout elapsed first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            async with self._lock:
                self._refill()
                if self._tokens >= tokens:
                    self._tokens -= tokens
                    return
                wait_time = (tokens - self._tokens) / self.rate

            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise RateLimitTimeout(
                        f"Could not acquire {tokens} token(s) within {timeout}s"
                    )
                wait_time = min(wait_time, remaining)

            logger.debug("Rate limiter waiting", wait_seconds=round(wait_time, 3))
            await asyncio.sleep(wait_time)

    async def drain(self, seconds: float) -> None:
        """
        Empty the bucket so no tokens are available for ``seconds``.

        Used when the server answers 429 with a Retry-After hint.
        """
        async with self._lock:
            self._refill()
            self._tokens = -seconds * self.rate
            logger.warning("Rate limiter drained", seconds=seconds)

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_update
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._last_update = now

    @property
    def available_tokens(self) -> float:
        return max(0.0, self._tokens)
