"""Rate limiting for outbound calls, one limiter per external dependency."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Dict, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    At most ``max_per_window`` acquisitions per rolling window (1 s default).

    Waiters queue on an asyncio.Lock, which wakes them in the order they
    arrived, so a slot always goes to the longest-waiting caller.
    """

    def __init__(
        self,
        name: str,
        max_per_window: int,
        window: float = 1.0,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        if max_per_window < 1:
            raise ValueError("max_per_window must be >= 1")
        self.name = name
        self.max_per_window = max_per_window
        self.window = window
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._grants: Deque[float] = deque()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Suspend until a slot is free, then take it."""
        async with self._lock:
            while True:
                now = self._clock()
                while self._grants and now - self._grants[0] >= self.window:
                    self._grants.popleft()

                if len(self._grants) < self.max_per_window:
                    self._grants.append(now)
                    return

                wait_for = self.window - (now - self._grants[0])
                logger.debug(f"[{self.name}] rate limit reached, waiting {wait_for:.2f}s")
                await self._sleep(max(wait_for, 0.0))

    async def __aenter__(self) -> RateLimiter:
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        return False

    def __repr__(self) -> str:
        return f"RateLimiter({self.name!r}, {self.max_per_window}/{self.window:g}s)"


class RateLimiterRegistry:
    """
    Named limiters. Each dependency gets its own budget.

    Example:
        limiters = RateLimiterRegistry({"scrape": 5, "images": 2})
        await limiters.get("images").acquire()
    """

    def __init__(self, rates: Optional[Dict[str, int]] = None, default_rate: int = 2):
        self._rates = dict(rates or {})
        self.default_rate = default_rate
        self._limiters: Dict[str, RateLimiter] = {}

    def get(self, name: str) -> RateLimiter:
        limiter = self._limiters.get(name)
        if limiter is None:
            rate = self._rates.get(name, self.default_rate)
            limiter = RateLimiter(name, rate)
            self._limiters[name] = limiter
            logger.debug(f"Created {limiter}")
        return limiter

    def __contains__(self, name: str) -> bool:
        return name in self._limiters
