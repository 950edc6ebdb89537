"""Market data providers used to enrich watchlists.

- FinnhubClient: quotes, company profiles and financial metrics via Finnhub

Providers implement MarketDataClientABC and return validated pydantic models.

Example:
    async with FinnhubClient(api_key="...") as client:
        quote = await client.get_quote("AAPL")
        print(f"AAPL: ${quote.current_price}")
"""
from market_watchlist.providers.core import MarketDataClientABC
from market_watchlist.providers.finnhub import FinnhubClient

__all__ = ["FinnhubClient", "MarketDataClientABC"]
