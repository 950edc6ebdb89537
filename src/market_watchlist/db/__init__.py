"""Database package: models, engine/session management and the watchlist store."""
from market_watchlist.db.models import AuthSession, User, WatchlistEntry
from market_watchlist.db.sessions import create_db_engine, init_db, session_scope
from market_watchlist.db.watchlist_repository import WatchlistRepository

__all__ = [
    "AuthSession",
    "User",
    "WatchlistEntry",
    "WatchlistRepository",
    "create_db_engine",
    "init_db",
    "session_scope",
]
