"""
Guarded external calls.

Every outbound call a stage makes is composed the same way:
cache lookup by fingerprint, then RetryPolicy around (rate limiter slot +
the call itself). Each retry attempt takes its own limiter slot, and a cache
hit makes no outbound call at all.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from ..core import RateLimiter, Result, ResultCache, RetryPolicy

logger = logging.getLogger(__name__)


class ExternalCaller:
    """Limiter + cache + retry around one external dependency."""

    def __init__(
        self,
        retry: RetryPolicy,
        cache: Optional[ResultCache] = None,
        limiter: Optional[RateLimiter] = None,
        name: str = "external"
    ):
        self.retry = retry
        self.cache = cache
        self.limiter = limiter
        self.name = name

    async def call(
        self,
        operation: Callable[[], Awaitable[Any]],
        cache_key: Optional[str] = None,
        ttl: Optional[float] = None,
        max_attempts: Optional[int] = None
    ) -> Result:
        """
        Run ``operation`` under this dependency's policy.

        Args:
            operation: Zero-argument coroutine function making the call
            cache_key: Fingerprint key; None disables caching for this call
            ttl: Cache TTL override
            max_attempts: Retry budget override (1 disables retries)

        Returns:
            Result.ok(value) or Result.err(RetryExhaustedError)
        """
        async def limited():
            if self.limiter is not None:
                await self.limiter.acquire()
            return await operation()

        async def attempt() -> Result:
            return await self.retry.execute(limited, max_attempts=max_attempts, name=self.name)

        if cache_key is not None and self.cache is not None:
            return await self.cache.get_or_compute(cache_key, attempt, ttl)
        return await attempt()
