"""Shared utilities for market data providers."""


def normalize_stock_symbol(symbol: str | None) -> str:
    """Normalize a stock symbol (trimmed, uppercase)."""
    return (symbol or "").strip().upper()


def normalize_company(company: str | None) -> str:
    """Normalize a company display name (trimmed)."""
    return (company or "").strip()
