"""Shared pytest fixtures: in-memory database, fake sessions, stubbed Finnhub."""
from datetime import timedelta

import httpx
import pytest

from market_watchlist.auth import SessionResolverABC, UserIdentity
from market_watchlist.db import (AuthSession, User, WatchlistRepository,
                                 create_db_engine, init_db, session_scope)
from market_watchlist.providers import FinnhubClient
from market_watchlist.services import InvalidationBus
from market_watchlist.utils import utcnow

FINNHUB_TEST_URL = "https://finnhub.test/api/v1"

# Finnhub payloads per symbol, keyed by the last path segment of each resource.
MARKET_DATA = {
    "AAPL": {
        "quote": {"c": 187.4, "dp": -2.345, "h": 190.1, "l": 186.0},
        "profile2": {"name": "Apple Inc", "marketCapitalization": 2910.5},
        "metric": {"metric": {"peExclExtraTTM": 31.08, "peTTM": 30.5, "52WeekHighDate": "2024-07-16"}},
    },
    "MSFT": {
        "quote": {"c": 410.0, "dp": 1.2},
        "profile2": {"name": "Microsoft Corp", "marketCapitalization": 950},
        "metric": {"metric": {"peExclExtraTTM": None, "peTTM": 35.123}},
    },
    "TSLA": {
        "quote": {"c": 250.0, "dp": 0.5},
        "profile2": {"name": "Tesla Inc", "marketCapitalization": 800},
        "metric": {"metric": {}},
    },
}


class StaticSessionResolver(SessionResolverABC):
    """Resolves every request to the same identity (or to anonymous)."""

    def __init__(self, identity: UserIdentity | None) -> None:
        self.identity = identity

    async def resolve(self, headers):
        return self.identity


def finnhub_handler(data=None, failing=(), calls=None):
    """MockTransport handler serving MARKET_DATA; symbols in `failing` get HTTP 500."""
    data = MARKET_DATA if data is None else data

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        symbol = request.url.params["symbol"]
        if symbol in failing or symbol not in data:
            return httpx.Response(500, json={"error": "upstream"})
        resource = request.url.path.rsplit("/", 1)[-1]
        return httpx.Response(200, json=data[symbol][resource])

    return handler


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine) -> WatchlistRepository:
    return WatchlistRepository(engine)


@pytest.fixture
def add_user(engine):
    """Insert a user (and optionally a session token) into the identity tables."""

    def _add(user_id, email, token=None, expires_in=timedelta(hours=1)):
        with session_scope(engine) as session:
            session.add(User(id=user_id, email=email))
        if token is not None:
            with session_scope(engine) as session:
                session.add(
                    AuthSession(
                        token=token, user_id=user_id, expires_at=utcnow() + expires_in
                    )
                )

    return _add


@pytest.fixture
def alice() -> UserIdentity:
    return UserIdentity(id="user-alice", email="alice@example.com")


@pytest.fixture
def signed_in(alice) -> StaticSessionResolver:
    return StaticSessionResolver(alice)


@pytest.fixture
def anonymous() -> StaticSessionResolver:
    return StaticSessionResolver(None)


@pytest.fixture
def bus() -> InvalidationBus:
    return InvalidationBus()


@pytest.fixture
def make_finnhub():
    """Build a FinnhubClient backed by httpx.MockTransport."""

    def _make(handler=None, api_key="test-token", **kwargs) -> FinnhubClient:
        return FinnhubClient(
            api_key=api_key,
            base_url=FINNHUB_TEST_URL,
            transport=httpx.MockTransport(handler or finnhub_handler()),
            **kwargs,
        )

    return _make


@pytest.fixture
def serve_market_data():
    """The finnhub_handler factory, for tests that need custom payloads or failures."""
    return finnhub_handler
