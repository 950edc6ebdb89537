"""Database models for the watchlist service.

Users and sessions belong to the external auth provider; this service only
reads them. Market data is fetched on demand and never stored.
"""
from datetime import datetime

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from market_watchlist.utils import utcnow


class User(SQLModel, table=True):
    """User account as written by the auth provider."""

    id: str = Field(primary_key=True)
    email: str = Field(unique=True, index=True)
    name: str | None = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class AuthSession(SQLModel, table=True):
    """Session issued by the auth provider; looked up by its token."""

    __tablename__ = "session"

    token: str = Field(primary_key=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    expires_at: datetime = Field(sa_type=DateTime(timezone=True))


class WatchlistEntry(SQLModel, table=True):
    """A user's saved interest in a ticker symbol. Never updated in place."""

    __tablename__ = "watchlist_entry"
    __table_args__ = (
        UniqueConstraint("user_id", "symbol", name="uq_watchlist_user_symbol"),
    )

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    symbol: str  # upper-cased, trimmed
    company: str
    added_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
