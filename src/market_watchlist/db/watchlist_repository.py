"""Watchlist persistence: one table keyed by (user_id, symbol).

All methods are blocking; async callers run them via asyncio.to_thread.
"""
import logging
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlmodel import select

from market_watchlist.db.models import User, WatchlistEntry
from market_watchlist.db.sessions import session_scope
from market_watchlist.exceptions import (DuplicateEntryError,
                                         UpstreamUnavailableError)
from market_watchlist.utils import utcnow

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO NOTHING
_ON_CONFLICT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@contextmanager
def _unavailable_on_error() -> Generator[None, None, None]:
    """Translate connection-level failures into UpstreamUnavailableError."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        raise UpstreamUnavailableError() from exc


class WatchlistRepository:
    """Reads and writes watchlist entries; resolves users by email."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def find_by_user(self, user_id: str) -> list[WatchlistEntry]:
        """Return the user's entries in insertion order."""
        with _unavailable_on_error(), session_scope(self._engine) as session:
            statement = (
                select(WatchlistEntry)
                .where(WatchlistEntry.user_id == user_id)
                .order_by(WatchlistEntry.id)
            )
            return list(session.exec(statement).all())

    def upsert_on_insert(self, user_id: str, symbol: str, company: str) -> bool:
        """Insert the entry if absent. Never overwrites an existing row.

        Returns:
            True when a row was created, False when (user_id, symbol) already existed.

        Raises:
            DuplicateEntryError: The store rejected the insert on the unique
                constraint (a concurrent add won the race).
        """
        values = {
            "user_id": user_id,
            "symbol": symbol,
            "company": company,
            "added_at": utcnow(),
        }
        insert = _ON_CONFLICT_INSERTS.get(self._engine.dialect.name)
        try:
            with _unavailable_on_error(), session_scope(self._engine) as session:
                if insert is not None:
                    statement = (
                        insert(WatchlistEntry.__table__)
                        .values(**values)
                        .on_conflict_do_nothing(index_elements=["user_id", "symbol"])
                    )
                    result = session.connection().execute(statement)
                    return result.rowcount == 1
                existing = session.exec(
                    select(WatchlistEntry.id).where(
                        WatchlistEntry.user_id == user_id,
                        WatchlistEntry.symbol == symbol,
                    )
                ).first()
                if existing is not None:
                    return False
                session.add(WatchlistEntry(**values))
                session.flush()
                return True
        except IntegrityError as exc:
            raise DuplicateEntryError(user_id, symbol) from exc

    def delete(self, user_id: str, symbol: str) -> bool:
        """Delete the entry; returns whether a row was removed. Absence is not an error."""
        with _unavailable_on_error(), session_scope(self._engine) as session:
            statement = delete(WatchlistEntry).where(
                WatchlistEntry.user_id == user_id,
                WatchlistEntry.symbol == symbol,
            )
            result = session.connection().execute(statement)
            return result.rowcount > 0

    def find_user_id_by_email(self, email: str) -> str | None:
        """Resolve a user id from the identity store; None if unknown."""
        email = (email or "").strip()
        if not email:
            return None
        with _unavailable_on_error(), session_scope(self._engine) as session:
            return session.exec(select(User.id).where(User.email == email)).first()

    def find_symbols_by_user_email(self, email: str) -> set[str]:
        """Return the symbols saved by the user with this email; empty if unknown."""
        user_id = self.find_user_id_by_email(email)
        if user_id is None:
            logger.debug("No user found for email lookup")
            return set()
        with _unavailable_on_error(), session_scope(self._engine) as session:
            rows = session.exec(
                select(WatchlistEntry.symbol).where(WatchlistEntry.user_id == user_id)
            ).all()
            return set(rows)
