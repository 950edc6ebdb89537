"""Finnhub market data provider."""
from market_watchlist.providers.finnhub.finnhub_client import FinnhubClient
from market_watchlist.providers.finnhub.models import (FinnhubMetrics,
                                                       FinnhubProfile,
                                                       FinnhubQuote)

__all__ = ["FinnhubClient", "FinnhubMetrics", "FinnhubProfile", "FinnhubQuote"]
