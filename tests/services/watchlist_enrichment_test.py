"""Tests for watchlist reads: enrichment, partial failure, fail-open paths."""
import asyncio
from unittest.mock import MagicMock

import httpx
import pytest

from market_watchlist.exceptions import UpstreamUnavailableError
from market_watchlist.services import WatchlistEnrichmentService

DERIVED_FIELDS = (
    "current_price",
    "change_percent",
    "price_formatted",
    "change_formatted",
    "market_cap",
    "pe_ratio",
)


def _read(service, headers=None):
    async def go():
        try:
            return await service.get_watchlist_with_data(headers or {})
        finally:
            await service._market_data.close()

    return asyncio.run(go())


@pytest.fixture
def seeded(repository, alice):
    for symbol, company in (("AAPL", "Apple Inc."), ("MSFT", "Microsoft"), ("TSLA", "Tesla")):
        repository.upsert_on_insert(alice.id, symbol, company)
    return repository


class TestGetWatchlistWithData:
    def test_enriches_every_entry(self, seeded, signed_in, make_finnhub):
        service = WatchlistEnrichmentService(seeded, signed_in, make_finnhub())

        rows = _read(service)

        assert [r.symbol for r in rows] == ["AAPL", "MSFT", "TSLA"]
        aapl, msft, tsla = rows
        assert aapl.user_id == "user-alice"
        assert aapl.company == "Apple Inc."
        assert aapl.current_price == 187.4
        assert aapl.change_percent == -2.345
        assert aapl.price_formatted == "$187.40"
        assert aapl.change_formatted == "-2.35%"
        assert aapl.market_cap == "$2.91T"
        assert aapl.pe_ratio == "31.08"
        assert msft.market_cap == "$950.00B"
        assert msft.pe_ratio == "35.12"
        assert tsla.pe_ratio is None
        assert tsla.market_cap == "$800.00B"

    def test_failed_symbol_degrades_only_its_row(
        self, seeded, signed_in, make_finnhub, serve_market_data
    ):
        client = make_finnhub(serve_market_data(failing={"MSFT"}))
        service = WatchlistEnrichmentService(seeded, signed_in, client)

        rows = _read(service)

        assert [r.symbol for r in rows] == ["AAPL", "MSFT", "TSLA"]
        assert rows[0].price_formatted == "$187.40"
        assert rows[2].price_formatted == "$250.00"
        msft = rows[1]
        assert msft.company == "Microsoft"
        assert msft.added_at is not None
        for field in DERIVED_FIELDS:
            assert getattr(msft, field) is None

    def test_malformed_payload_degrades_row(self, seeded, signed_in, make_finnhub, serve_market_data):
        handler = serve_market_data()

        def malformed(request: httpx.Request) -> httpx.Response:
            if request.url.params["symbol"] == "AAPL" and request.url.path.endswith("/quote"):
                return httpx.Response(200, json={"c": "abc"})
            return handler(request)

        service = WatchlistEnrichmentService(seeded, signed_in, make_finnhub(malformed))

        rows = _read(service)

        assert rows[0].symbol == "AAPL"
        assert rows[0].current_price is None
        assert rows[0].market_cap is None
        assert rows[1].current_price == 410.0

    def test_unexpected_error_degrades_only_its_row(
        self, seeded, signed_in, make_finnhub, serve_market_data
    ):
        handler = serve_market_data()

        def broken_for_msft(request: httpx.Request) -> httpx.Response:
            if request.url.params["symbol"] == "MSFT":
                raise RuntimeError("transport bug")
            return handler(request)

        service = WatchlistEnrichmentService(seeded, signed_in, make_finnhub(broken_for_msft))

        rows = _read(service)

        assert [r.symbol for r in rows] == ["AAPL", "MSFT", "TSLA"]
        assert rows[0].price_formatted == "$187.40"
        assert rows[2].price_formatted == "$250.00"
        for field in DERIVED_FIELDS:
            assert getattr(rows[1], field) is None

    def test_client_raising_outside_request_degrades_rows(self, seeded, signed_in):
        client = MagicMock()
        client.is_configured = True
        client.get_quote.side_effect = AttributeError("no quote")
        service = WatchlistEnrichmentService(seeded, signed_in, client)

        rows = asyncio.run(service.get_watchlist_with_data({}))

        assert [r.symbol for r in rows] == ["AAPL", "MSFT", "TSLA"]
        assert all(r.current_price is None for r in rows)

    def test_order_preserved_regardless_of_completion_order(
        self, seeded, signed_in, make_finnhub, serve_market_data
    ):
        handler = serve_market_data()
        delays = {"AAPL": 0.05, "MSFT": 0.0, "TSLA": 0.02}

        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(delays[request.url.params["symbol"]])
            return handler(request)

        service = WatchlistEnrichmentService(seeded, signed_in, make_finnhub(slow))

        rows = _read(service)

        assert [r.symbol for r in rows] == ["AAPL", "MSFT", "TSLA"]
        assert all(r.current_price is not None for r in rows)

    def test_max_concurrency_bounds_in_flight_requests(
        self, seeded, signed_in, make_finnhub, serve_market_data
    ):
        handler = serve_market_data()
        in_flight = 0
        peak = 0

        async def tracked(request: httpx.Request) -> httpx.Response:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.05)
            in_flight -= 1
            return handler(request)

        service = WatchlistEnrichmentService(
            seeded, signed_in, make_finnhub(tracked), max_concurrency=2
        )

        rows = _read(service)

        assert len(rows) == 3
        assert peak <= 2

    def test_unbounded_fan_out_issues_all_requests_concurrently(
        self, seeded, signed_in, make_finnhub, serve_market_data
    ):
        handler = serve_market_data()
        in_flight = 0
        peak = 0

        async def tracked(request: httpx.Request) -> httpx.Response:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.05)
            in_flight -= 1
            return handler(request)

        service = WatchlistEnrichmentService(seeded, signed_in, make_finnhub(tracked))
        _read(service)

        assert peak == 9

    def test_missing_credential_returns_base_rows(
        self, seeded, signed_in, make_finnhub, serve_market_data
    ):
        calls: list[httpx.Request] = []
        client = make_finnhub(serve_market_data(calls=calls), api_key="")
        service = WatchlistEnrichmentService(seeded, signed_in, client)

        rows = _read(service)

        assert [r.symbol for r in rows] == ["AAPL", "MSFT", "TSLA"]
        for row in rows:
            assert row.company
            for field in DERIVED_FIELDS:
                assert getattr(row, field) is None
        assert calls == []

    def test_empty_watchlist_skips_network(
        self, repository, signed_in, make_finnhub, serve_market_data
    ):
        calls: list[httpx.Request] = []
        service = WatchlistEnrichmentService(
            repository, signed_in, make_finnhub(serve_market_data(calls=calls))
        )
        assert _read(service) == []
        assert calls == []

    def test_anonymous_gets_empty_list(self, seeded, anonymous, make_finnhub):
        service = WatchlistEnrichmentService(seeded, anonymous, make_finnhub())
        assert _read(service) == []

    def test_store_failure_fails_open(self, signed_in, make_finnhub):
        repository = MagicMock()
        repository.find_by_user.side_effect = UpstreamUnavailableError()
        service = WatchlistEnrichmentService(repository, signed_in, make_finnhub())
        assert _read(service) == []


class TestGetUserWatchlist:
    def test_raw_entries(self, seeded, signed_in, make_finnhub):
        service = WatchlistEnrichmentService(seeded, signed_in, make_finnhub())
        items = asyncio.run(service.get_user_watchlist({}))
        assert [(i.symbol, i.company) for i in items] == [
            ("AAPL", "Apple Inc."),
            ("MSFT", "Microsoft"),
            ("TSLA", "Tesla"),
        ]

    def test_anonymous_gets_empty_list(self, seeded, anonymous, make_finnhub):
        service = WatchlistEnrichmentService(seeded, anonymous, make_finnhub())
        assert asyncio.run(service.get_user_watchlist({})) == []


class TestGetWatchlistSymbolsByEmail:
    def test_known_email(self, seeded, add_user, signed_in, make_finnhub, alice):
        add_user(alice.id, alice.email)
        service = WatchlistEnrichmentService(seeded, signed_in, make_finnhub())
        symbols = asyncio.run(service.get_watchlist_symbols_by_email(alice.email))
        assert symbols == {"AAPL", "MSFT", "TSLA"}

    def test_unknown_email_is_empty_set(self, seeded, anonymous, make_finnhub):
        service = WatchlistEnrichmentService(seeded, anonymous, make_finnhub())
        assert asyncio.run(service.get_watchlist_symbols_by_email("ghost@example.com")) == set()

    def test_lookup_failure_fails_open(self, anonymous, make_finnhub):
        repository = MagicMock()
        repository.find_symbols_by_user_email.side_effect = UpstreamUnavailableError()
        service = WatchlistEnrichmentService(repository, anonymous, make_finnhub())
        assert asyncio.run(service.get_watchlist_symbols_by_email("a@example.com")) == set()
