"""Finnhub market data client for watchlist enrichment."""
import logging
import time
from collections.abc import Callable
from typing import Any

import httpx
from cachetools import TTLCache

from market_watchlist.providers.core import MarketDataClientABC
from market_watchlist.providers.core.utils import normalize_stock_symbol
from market_watchlist.providers.finnhub.models import (FinnhubMetricParams,
                                                       FinnhubMetrics,
                                                       FinnhubProfile,
                                                       FinnhubQuote)

logger = logging.getLogger(__name__)


class FinnhubClient(MarketDataClientABC):
    """Market data client for stocks via the Finnhub REST API.

    Every request carries the symbol and the API token as query parameters.
    Responses are cached in-process: quotes briefly (near-real-time price),
    profiles and metrics for longer (slow-changing fundamentals).
    """

    BASE_URL = "https://finnhub.io/api/v1"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float = 10.0,
        quote_cache_seconds: float = 60.0,
        fundamentals_cache_seconds: float = 3600.0,
        cache_size: int = 8000,
        timer: Callable[[], float] = time.monotonic,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Finnhub client.

        Args:
            api_key: Finnhub API token. Empty or None means not configured.
            base_url: API root; defaults to BASE_URL.
            timeout: Per-request timeout in seconds.
            quote_cache_seconds: Cache lifetime for /quote responses.
            fundamentals_cache_seconds: Cache lifetime for profile and metrics.
            cache_size: Max responses kept per cache lifetime.
            timer: Clock for cache expiry (injectable for tests).
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests).
        """
        self._api_key = (api_key or "").strip()
        self._quote_ttl = quote_cache_seconds
        self._fundamentals_ttl = fundamentals_cache_seconds
        self._cache_size = cache_size
        self._timer = timer
        # One bounded cache per lifetime; quotes and fundamentals expire independently.
        self._caches: dict[float, TTLCache] = {}
        for ttl in (quote_cache_seconds, fundamentals_cache_seconds):
            self._cache_for(ttl)
        self._client = httpx.AsyncClient(
            base_url=base_url or self.BASE_URL,
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _cache_for(self, cache_seconds: float) -> TTLCache | None:
        if cache_seconds <= 0:
            return None
        if cache_seconds not in self._caches:
            self._caches[cache_seconds] = TTLCache(
                maxsize=self._cache_size, ttl=cache_seconds, timer=self._timer
            )
        return self._caches[cache_seconds]

    async def fetch_json(
        self, path: str, params: dict[str, str], cache_seconds: float
    ) -> Any:
        """Cached GET returning parsed JSON.

        The cache key is the path plus params (the token is not part of it).
        Non-positive cache_seconds bypasses the cache.

        Raises:
            httpx.HTTPError: Network failure or non-2xx response.
            ValueError: Body is not valid JSON.
        """
        cache = self._cache_for(cache_seconds)
        key = (path, tuple(sorted(params.items())))
        if cache is not None:
            cached = cache.get(key)
            if cached is not None:
                return cached
        logger.debug("Finnhub GET %s %s", path, params)
        response = await self._client.get(path, params=params | {"token": self._api_key})
        response.raise_for_status()
        data = response.json()
        if cache is not None and data is not None:
            cache[key] = data
        return data

    async def get_quote(self, symbol: str) -> FinnhubQuote:
        """Fetch the current quote for a stock symbol."""
        sym = normalize_stock_symbol(symbol)
        data = await self.fetch_json("/quote", {"symbol": sym}, self._quote_ttl)
        return FinnhubQuote.model_validate(data)

    async def get_profile(self, symbol: str) -> FinnhubProfile:
        """Fetch the company profile (market capitalization in billions)."""
        sym = normalize_stock_symbol(symbol)
        data = await self.fetch_json(
            "/stock/profile2", {"symbol": sym}, self._fundamentals_ttl
        )
        return FinnhubProfile.model_validate(data)

    async def get_metrics(self, symbol: str) -> FinnhubMetrics:
        """Fetch all basic financial metrics for a stock symbol."""
        sym = normalize_stock_symbol(symbol)
        params = FinnhubMetricParams().model_dump() | {"symbol": sym}
        data = await self.fetch_json("/stock/metric", params, self._fundamentals_ttl)
        return FinnhubMetrics.model_validate(data)

    def cached_count(self) -> int:
        """Number of live cached responses across all lifetimes."""
        return sum(len(cache) for cache in self._caches.values())

    def clear_cache(self) -> None:
        """Drop all cached responses."""
        for cache in self._caches.values():
            cache.clear()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
