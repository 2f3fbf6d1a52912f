"""
Unit tests for RateLimiter.
"""

import asyncio

import pytest

from newsreels.core import RateLimiter, RateLimiterRegistry


class SteppingClock:
    """Clock that moves forward whenever the limiter sleeps."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, delay):
        self.sleeps.append(delay)
        self.now += delay

    async def yielding_sleep(self, delay):
        """Like sleep, but lets other waiters run while the clock moves."""
        await self.sleep(delay)
        await asyncio.sleep(0)


@pytest.mark.unit
class TestRateLimiter:

    def test_allows_burst_up_to_limit(self):
        clock = SteppingClock()
        limiter = RateLimiter("images", 2, clock=clock, sleep=clock.sleep)

        async def go():
            await limiter.acquire()
            await limiter.acquire()

        asyncio.run(go())
        assert clock.sleeps == []

    def test_waits_for_window(self):
        clock = SteppingClock()
        limiter = RateLimiter("images", 2, window=1.0, clock=clock, sleep=clock.sleep)

        async def go():
            for _ in range(3):
                await limiter.acquire()

        asyncio.run(go())
        assert clock.sleeps == [1.0]
        assert clock.now == 1.0

    def test_at_most_n_grants_per_window(self):
        clock = SteppingClock()
        limiter = RateLimiter("scrape", 5, clock=clock, sleep=clock.sleep)
        granted = []

        async def go():
            for _ in range(12):
                await limiter.acquire()
                granted.append(clock.now)

        asyncio.run(go())
        for t in granted:
            in_window = [g for g in granted if t <= g < t + 1.0]
            assert len(in_window) <= 5

    def test_context_manager(self):
        clock = SteppingClock()
        limiter = RateLimiter("audio", 1, clock=clock, sleep=clock.sleep)

        async def go():
            async with limiter:
                pass
            async with limiter:
                pass

        asyncio.run(go())
        assert clock.sleeps == [1.0]

    def test_concurrent_waiters_granted_in_request_order(self):
        clock = SteppingClock()
        limiter = RateLimiter("images", 2, window=1.0, clock=clock, sleep=clock.yielding_sleep)
        granted = []

        async def waiter(n):
            await limiter.acquire()
            granted.append((n, clock.now))

        async def go():
            await asyncio.gather(*(waiter(n) for n in range(6)))

        asyncio.run(go())
        assert [n for n, _ in granted] == [0, 1, 2, 3, 4, 5]
        assert [t for _, t in granted] == [0.0, 0.0, 1.0, 1.0, 2.0, 2.0]

    def test_invalid_rate(self):
        with pytest.raises(ValueError):
            RateLimiter("x", 0)


@pytest.mark.unit
class TestRateLimiterRegistry:

    def test_named_limiters_are_shared(self):
        registry = RateLimiterRegistry({"scrape": 5, "images": 2})

        assert registry.get("scrape") is registry.get("scrape")
        assert registry.get("scrape").max_per_window == 5
        assert registry.get("images").max_per_window == 2
        assert "scrape" in registry

    def test_default_rate(self):
        registry = RateLimiterRegistry({}, default_rate=3)
        assert registry.get("publish").max_per_window == 3
