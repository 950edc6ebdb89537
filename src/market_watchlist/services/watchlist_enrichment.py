"""Watchlist reads: raw entries, entries enriched with market data, symbol sets.

Read paths fail open: no session, no credential or an unreachable store
yield empty or unenriched results instead of errors.
"""
import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Mapping
from typing import TypeVar

from market_watchlist.auth import SessionResolverABC
from market_watchlist.db import WatchlistRepository
from market_watchlist.exceptions import (ConfigurationMissingError,
                                         EnrichmentPartialFailure)
from market_watchlist.providers.core import MarketDataClientABC
from market_watchlist.schemas import EnrichedWatchlistRow, WatchlistItem
from market_watchlist.services.formatting import (format_currency,
                                                  format_market_cap,
                                                  format_percent,
                                                  format_ratio, pick_pe_ratio)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WatchlistEnrichmentService:
    """Loads a user's watchlist and merges in quote, profile and metric data.

    Every entry maps to exactly one row in the same order. A failed fetch
    only strips the derived fields from that entry's row.
    """

    def __init__(
        self,
        repository: WatchlistRepository,
        session_resolver: SessionResolverABC,
        market_data: MarketDataClientABC,
        *,
        max_concurrency: int | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            repository: Watchlist store.
            session_resolver: Resolves request headers to a user.
            market_data: Client for quote, profile and metrics resources.
            max_concurrency: Upper bound on in-flight market data requests
                per read; None leaves the 3-per-entry fan-out unbounded.
        """
        self._repository = repository
        self._sessions = session_resolver
        self._market_data = market_data
        self._max_concurrency = max_concurrency

    async def get_user_watchlist(self, headers: Mapping[str, str]) -> list[WatchlistItem]:
        """Raw entries for the session's user; empty when anonymous or on store failure."""
        try:
            user = await self._sessions.resolve(headers)
            if user is None:
                return []
            entries = await asyncio.to_thread(self._repository.find_by_user, user.id)
        except Exception:  # pylint: disable=broad-except
            logger.exception("get_user_watchlist error")
            return []
        return [WatchlistItem.model_validate(entry) for entry in entries]

    async def get_watchlist_with_data(
        self, headers: Mapping[str, str]
    ) -> list[EnrichedWatchlistRow]:
        """Entries for the session's user enriched with market data, in store order."""
        items = await self.get_user_watchlist(headers)
        if not items:
            return []

        try:
            self._ensure_configured()
        except ConfigurationMissingError as exc:
            logger.error("get_watchlist_with_data: %s", exc.message)
            return [EnrichedWatchlistRow(**item.model_dump()) for item in items]

        semaphore = (
            asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None
        )
        try:
            rows = await asyncio.gather(*(self._enrich(item, semaphore) for item in items))
        except Exception:  # pylint: disable=broad-except
            logger.exception("get_watchlist_with_data error")
            return []
        return list(rows)

    async def get_watchlist_symbols_by_email(self, email: str) -> set[str]:
        """Symbols saved by the user with this email; empty set on any failure."""
        if not (email or "").strip():
            return set()
        try:
            return await asyncio.to_thread(
                self._repository.find_symbols_by_user_email, email
            )
        except Exception:  # pylint: disable=broad-except
            logger.exception("get_watchlist_symbols_by_email error")
            return set()

    def _ensure_configured(self) -> None:
        if not self._market_data.is_configured:
            raise ConfigurationMissingError()

    async def _enrich(
        self, item: WatchlistItem, semaphore: asyncio.Semaphore | None
    ) -> EnrichedWatchlistRow:
        """Build one row; any failure yields the base-only row instead of raising."""
        try:
            return await self._fetch_row(item, semaphore)
        except EnrichmentPartialFailure as exc:
            logger.warning("%s: %s", exc.message, exc.__cause__)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Failed to build watchlist row for %s", item.symbol)
        return EnrichedWatchlistRow(**item.model_dump())

    async def _fetch_row(
        self, item: WatchlistItem, semaphore: asyncio.Semaphore | None
    ) -> EnrichedWatchlistRow:
        sym = item.symbol
        try:
            quote, profile, metrics = await asyncio.gather(
                _bounded(self._market_data.get_quote(sym), semaphore),
                _bounded(self._market_data.get_profile(sym), semaphore),
                _bounded(self._market_data.get_metrics(sym), semaphore),
            )
        except Exception as exc:  # pylint: disable=broad-except
            raise EnrichmentPartialFailure(sym) from exc

        price = quote.current_price
        change = quote.change_percent
        return EnrichedWatchlistRow(
            **item.model_dump(),
            current_price=price,
            change_percent=change,
            price_formatted=format_currency(price),
            change_formatted=format_percent(change),
            market_cap=format_market_cap(profile.market_capitalization),
            pe_ratio=format_ratio(pick_pe_ratio(metrics.metric)),
        )


async def _bounded(awaitable: Awaitable[T], semaphore: asyncio.Semaphore | None) -> T:
    """Await under the semaphore when one is given."""
    async with (semaphore if semaphore is not None else contextlib.nullcontext()):
        return await awaitable
