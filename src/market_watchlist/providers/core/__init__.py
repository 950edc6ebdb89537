"""Core provider abstractions."""
from market_watchlist.providers.core.market_data_client_abc import \
    MarketDataClientABC
from market_watchlist.providers.core.utils import (normalize_company,
                                                   normalize_stock_symbol)

__all__ = [
    "MarketDataClientABC",
    "normalize_company",
    "normalize_stock_symbol",
]
