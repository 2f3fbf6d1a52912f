"""
HTML fetcher for scraper implementations.

Scrapers parse pages themselves; this class only handles the transport part
the core cares about: the ``scrape`` rate limit, retries, a cached copy of
recently fetched pages, and a per-request timeout.
"""

import asyncio
import logging
import random
from typing import List, Optional

import aiohttp

from ..core import ExternalServiceError
from ..content.fingerprint import fingerprint
from ..pipeline.external import ExternalCaller

logger = logging.getLogger(__name__)

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1",
]


class HtmlFetcher:
    """
    Rate-limited, retried, cached GET for article pages.

    Example:
        async with HtmlFetcher(caller) as fetcher:
            html = await fetcher.fetch("https://example.com/")
    """

    def __init__(
        self,
        caller: ExternalCaller,
        timeout: float = 10.0,
        accept_language: str = "en-US,en;q=0.9",
        user_agents: Optional[List[str]] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self.caller = caller
        self.timeout = timeout
        self.accept_language = accept_language
        self.user_agents = user_agents or USER_AGENTS
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "HtmlFetcher":
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.close()
        return False

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def fetch(self, url: str) -> str:
        """
        Page body as text.

        Raises:
            ExternalServiceError: If every attempt failed
        """
        result = await self.caller.call(
            lambda: self._get(url),
            cache_key=fingerprint("html", url),
        )
        if result.is_err():
            raise ExternalServiceError(str(result.unwrap_err()))
        return result.unwrap()

    async def _get(self, url: str) -> str:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

        headers = {
            "User-Agent": random.choice(self.user_agents),
            "Accept-Language": self.accept_language,
        }
        try:
            async with self._session.get(
                url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status != 200:
                    raise ExternalServiceError(f"GET {url} returned status {response.status}")
                return await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ExternalServiceError(f"GET {url} failed: {e}") from e
