"""Pydantic schemas for API and runtime use. Not persisted to DB."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from market_watchlist.utils import as_utc, utcnow


class WatchlistItem(BaseModel):
    """A persisted watchlist entry as returned to callers."""

    user_id: str
    symbol: str
    company: str
    added_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("added_at")
    @classmethod
    def _added_at_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class EnrichedWatchlistRow(WatchlistItem):
    """Watchlist entry with market data. Derived fields are None when enrichment failed."""

    current_price: float | None = None
    change_percent: float | None = None
    price_formatted: str | None = None  # "$187.42"
    change_formatted: str | None = None  # "-2.35%"
    market_cap: str | None = None  # "$950.00B" / "$2.91T"
    pe_ratio: str | None = None  # "31.08"


class AddToWatchlistRequest(BaseModel):
    """POST /watchlist body. Emptiness is checked by the service, not here."""

    symbol: str = ""
    company: str = ""


class ActionOk(BaseModel):
    """Successful mutation."""

    ok: Literal[True] = True


class ActionFailed(BaseModel):
    """Failed mutation with a short user-facing message."""

    ok: Literal[False] = False
    error: str


ActionResult = ActionOk | ActionFailed


class InvalidationEvent(BaseModel):
    """WebSocket push payload: the user's cached watchlist view is stale.

    ``ready`` is sent once on subscribe with the current version;
    ``invalidate`` after every successful add/remove.
    """

    event: Literal["ready", "invalidate"] = "invalidate"
    scope: str = "watchlist"
    user_id: str
    version: int
    timestamp: datetime = Field(default_factory=utcnow)


__all__ = [
    "ActionFailed",
    "ActionOk",
    "ActionResult",
    "AddToWatchlistRequest",
    "EnrichedWatchlistRow",
    "InvalidationEvent",
    "WatchlistItem",
]
