"""Session resolution against sessions issued by the external auth provider.

The service never issues sessions. It reads the session token from the
``Authorization: Bearer`` header or the session cookie and looks it up.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass

from sqlalchemy.engine import Engine
from sqlmodel import select
from starlette.requests import cookie_parser

from market_watchlist.db.models import AuthSession, User
from market_watchlist.db.sessions import session_scope
from market_watchlist.utils import as_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserIdentity:
    """Authenticated user as seen by the watchlist services."""

    id: str
    email: str | None = None


class SessionResolverABC(ABC):
    """Resolves request headers to an authenticated user, or None for anonymous."""

    @abstractmethod
    async def resolve(self, headers: Mapping[str, str]) -> UserIdentity | None:
        """Return the session's user, or None when there is no valid session."""


def extract_session_token(headers: Mapping[str, str], cookie_name: str) -> str | None:
    """Read the session token from a bearer Authorization header or the session cookie."""
    authorization = (headers.get("authorization") or "").strip()
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    raw_cookie = headers.get("cookie")
    if not raw_cookie:
        return None
    return cookie_parser(raw_cookie).get(cookie_name) or None


class DatabaseSessionResolver(SessionResolverABC):
    """Looks session tokens up in the auth provider's session table."""

    def __init__(self, engine: Engine, *, cookie_name: str = "session_token") -> None:
        self._engine = engine
        self._cookie_name = cookie_name

    async def resolve(self, headers: Mapping[str, str]) -> UserIdentity | None:
        token = extract_session_token(headers, self._cookie_name)
        if token is None:
            return None
        return await asyncio.to_thread(self._lookup, token)

    def _lookup(self, token: str) -> UserIdentity | None:
        with session_scope(self._engine) as session:
            row = session.exec(
                select(AuthSession, User)
                .join(User, User.id == AuthSession.user_id)
                .where(AuthSession.token == token)
            ).first()
        if row is None:
            return None
        auth_session, user = row
        if as_utc(auth_session.expires_at) <= utcnow():
            logger.debug("Session for user %s has expired", user.id)
            return None
        return UserIdentity(id=user.id, email=user.email)
