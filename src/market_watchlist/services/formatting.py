"""Display formatting for enriched watchlist rows. All values use two decimals."""
from collections.abc import Mapping
from typing import Any

# Checked in order; the first key with a non-null value wins.
PE_RATIO_KEYS = ("peExclExtraTTM", "peTTM", "trailingPE")

_TRILLION_IN_BILLIONS = 1000


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_currency(value: float | None) -> str | None:
    """187.4 -> "$187.40"."""
    if not _is_number(value):
        return None
    return f"${value:.2f}"


def format_percent(value: float | None) -> str | None:
    """-2.345 -> "-2.35%" (sign preserved)."""
    if not _is_number(value):
        return None
    return f"{value:.2f}%"


def format_market_cap(billions: float | None) -> str | None:
    """Market cap given in billions: 950 -> "$950.00B", 1500 -> "$1.50T"."""
    if not _is_number(billions):
        return None
    if billions >= _TRILLION_IN_BILLIONS:
        return f"${billions / _TRILLION_IN_BILLIONS:.2f}T"
    return f"${billions:.2f}B"


def pick_pe_ratio(metric: Mapping[str, Any] | None) -> float | None:
    """First present P/E variant; None when absent or not numeric."""
    if not metric:
        return None
    for key in PE_RATIO_KEYS:
        value = metric.get(key)
        if value is not None:
            return value if _is_number(value) else None
    return None


def format_ratio(value: float | None) -> str | None:
    if not _is_number(value):
        return None
    return f"{value:.2f}"
