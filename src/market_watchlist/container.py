"""DI container: the composition root. main.create_app() resolves services from it."""
from dependency_injector import containers, providers

from market_watchlist.auth import DatabaseSessionResolver
from market_watchlist.config import load_settings
from market_watchlist.db import WatchlistRepository, create_db_engine
from market_watchlist.providers import FinnhubClient
from market_watchlist.services import (InvalidationBus,
                                       WatchlistEnrichmentService,
                                       WatchlistMutationService)


class Container(containers.DeclarativeContainer):
    settings = providers.Singleton(load_settings)

    engine = providers.Singleton(
        create_db_engine,
        settings.provided.database_url,
        echo=settings.provided.sql_echo,
    )

    repository = providers.Singleton(WatchlistRepository, engine)
    session_resolver = providers.Singleton(
        DatabaseSessionResolver,
        engine,
        cookie_name=settings.provided.session_cookie_name,
    )

    market_data_client = providers.Singleton(
        FinnhubClient,
        api_key=settings.provided.finnhub_api_key,
        base_url=settings.provided.finnhub_base_url,
        timeout=settings.provided.http_timeout_seconds,
        quote_cache_seconds=settings.provided.quote_cache_seconds,
        fundamentals_cache_seconds=settings.provided.fundamentals_cache_seconds,
    )

    invalidation_bus = providers.Singleton(InvalidationBus)

    mutation_service = providers.Singleton(
        WatchlistMutationService,
        repository=repository,
        session_resolver=session_resolver,
        invalidation_bus=invalidation_bus,
    )
    enrichment_service = providers.Singleton(
        WatchlistEnrichmentService,
        repository=repository,
        session_resolver=session_resolver,
        market_data=market_data_client,
        max_concurrency=settings.provided.enrichment_max_concurrency,
    )
