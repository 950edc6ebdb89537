"""Per-user stock watchlists enriched with Finnhub market data."""
