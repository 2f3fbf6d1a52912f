"""
Time-bounded memoization of expensive generation calls.

The cache is a cost optimization only: losing it (process restart, eviction)
never changes what the pipeline produces, just how many external calls it
makes. Keys are content fingerprints, never item ids, so identical requests
made for different items share one result.

Eviction: lazily on read, by ``sweep()`` (run by the orchestrator at the
start of each cycle), and oldest-first once ``max_entries`` is reached.
"""

import logging
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Optional, Tuple

from .result import Result

logger = logging.getLogger(__name__)

_MISSING = object()


class ResultCache:
    """
    Bounded in-memory TTL map.

    Example:
        cache = ResultCache(default_ttl=3600)
        key = fingerprint("image", prompt, prefix=400)
        result = await cache.get_or_compute(key, lambda: guarded_generate(prompt))
    """

    def __init__(
        self,
        default_ttl: float = 3600.0,
        max_entries: int = 512,
        sweep_interval: float = 600.0,
        clock: Optional[Callable[[], float]] = None
    ):
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self.sweep_interval = sweep_interval
        self._clock = clock or time.monotonic
        self._entries: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()
        self._last_sweep = self._clock()
        self.hits = 0
        self.misses = 0

    def _lookup(self, key: str) -> Any:
        """Cached value or _MISSING; drops the entry if it has expired."""
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return _MISSING
        return value

    def get(self, key: str, default: Optional[Any] = None) -> Optional[Any]:
        """Return the cached value, or ``default`` when absent or expired."""
        value = self._lookup(key)
        if value is _MISSING:
            self.misses += 1
            return default
        self.hits += 1
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries.pop(key, None)
        self._entries[key] = (self._clock() + ttl, value)

        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Cache full, evicted {evicted}")

    async def get_or_compute(
        self,
        key: str,
        factory: Callable[[], Awaitable[Result]],
        ttl: Optional[float] = None
    ) -> Result:
        """
        Return Result.ok(cached) on a hit, otherwise await ``factory``.

        Only successful results are stored.
        """
        self.sweep_if_due()
        cached = self.get(key, _MISSING)
        if cached is not _MISSING:
            logger.info(f"♻️ Cache hit: {key}")
            return Result.ok(cached)

        result = await factory()
        if result.is_ok():
            self.set(key, result.unwrap(), ttl)
        return result

    def sweep(self) -> int:
        """Drop every expired entry. Returns the number evicted."""
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        self._last_sweep = now
        if expired:
            logger.info(f"🧹 Cache sweep evicted {len(expired)} expired entries")
        return len(expired)

    def sweep_if_due(self) -> int:
        if self._clock() - self._last_sweep >= self.sweep_interval:
            return self.sweep()
        return 0

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self._lookup(key) is not _MISSING
