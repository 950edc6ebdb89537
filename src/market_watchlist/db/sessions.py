"""Database engine and session management."""
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from market_watchlist.db.models import (  # noqa: F401  # pylint: disable=unused-import
    AuthSession, User, WatchlistEntry)


def create_db_engine(url: str, *, echo: bool = False) -> Engine:
    """Create a synchronous engine; SQLite gets thread-safe settings for to_thread use."""
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)
    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


@contextmanager
def session_scope(engine: Engine) -> Generator[Session, None, None]:
    """Yield a database session; commits on success, rolls back on error.

    Objects stay usable after the session closes (expire_on_commit=False).
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """Create all tables. Safe to call on startup (idempotent for existing tables)."""
    SQLModel.metadata.create_all(engine)
