"""
Unit tests for the token bucket rate limiter.
"""
import pytest

from pkg.resilience.rate_limiter import RateLimiter, RateLimitTimeout


class TestRateLimiter:
    """Tests for RateLimiter."""

    @pytest.mark.asyncio
    async def test_acquire_until_empty(self):
        limiter = RateLimiter(rate=0.001, capacity=3)

        assert await limiter.acquire()
        assert await limiter.acquire()
        assert await limiter.acquire()
        assert not await limiter.acquire()

    @pytest.mark.asyncio
    async def test_acquire_multiple_tokens(self):
        limiter = RateLimiter(rate=0.001, capacity=5)

        assert await limiter.acquire(4)
        assert not await limiter.acquire(2)

    @pytest.mark.asyncio
    async def test_wait_and_acquire_times_out(self):
        limiter = RateLimiter(rate=0.001, capacity=1)
        await limiter.wait_and_acquire()

        with pytest.raises(RateLimitTimeout):
            await limiter.wait_and_acquire(timeout=0.01)

    @pytest.mark.asyncio
    async def test_wait_and_acquire_refills(self):
        limiter = RateLimiter(rate=100.0, capacity=1)
        await limiter.wait_and_acquire()

        await limiter.wait_and_acquire(timeout=1.0)

    @pytest.mark.asyncio
    async def test_drain_blocks_acquisition(self):
        limiter = RateLimiter(rate=1.0, capacity=40)

        await limiter.drain(5)

        assert limiter.available_tokens == 0
        assert not await limiter.acquire()

    @pytest.mark.parametrize("rate,capacity", [(0, 1), (1, 0), (-1, 5)])
    def test_invalid_configuration(self, rate, capacity):
        with pytest.raises(ValueError):
            RateLimiter(rate=rate, capacity=capacity)
