"""Abstract base class for market data clients."""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from market_watchlist.providers.finnhub.models import (FinnhubMetrics,
                                                           FinnhubProfile,
                                                           FinnhubQuote)


class MarketDataClientABC(ABC):
    """Interface the enrichment service depends on.

    Each method fetches one resource for one symbol. Failures (network errors,
    non-2xx responses, malformed bodies) are raised so callers can contain
    them per symbol.
    """

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether an API credential is available."""

    @abstractmethod
    async def get_quote(self, symbol: str) -> "FinnhubQuote":
        """Fetch the live quote (short cache lifetime)."""

    @abstractmethod
    async def get_profile(self, symbol: str) -> "FinnhubProfile":
        """Fetch the company profile (long cache lifetime)."""

    @abstractmethod
    async def get_metrics(self, symbol: str) -> "FinnhubMetrics":
        """Fetch aggregate financial metrics (long cache lifetime)."""

    async def close(self) -> None:
        """Clean up resources (connections, clients).

        Override in subclasses if cleanup is needed.
        """

    async def __aenter__(self) -> "MarketDataClientABC":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit - calls close()."""
        await self.close()
