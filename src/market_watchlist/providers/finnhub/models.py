"""Models for Finnhub responses and request params."""
from typing import Any

from pydantic import BaseModel, Field


class FinnhubQuote(BaseModel):
    """/quote response; only the fields the watchlist uses."""

    current_price: float | None = Field(default=None, alias="c")
    change_percent: float | None = Field(default=None, alias="dp")

    model_config = {"populate_by_name": True}


class FinnhubProfile(BaseModel):
    """/stock/profile2 response. Market capitalization is in billions (USD)."""

    name: str | None = None
    market_capitalization: float | None = Field(
        default=None, alias="marketCapitalization"
    )

    model_config = {"populate_by_name": True}


class FinnhubMetrics(BaseModel):
    """/stock/metric response. Values are mostly numbers, some are dates."""

    metric: dict[str, Any] = Field(default_factory=dict)


class FinnhubMetricParams(BaseModel):
    """Params for /stock/metric. Merge with 'symbol' at call site."""

    metric: str = "all"
