"""Main module for the watchlist service."""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from market_watchlist.config import load_settings
from market_watchlist.container import Container
from market_watchlist.db import init_db
from market_watchlist.routers import watchlist_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Resolve services from the container at startup; close the market data client on shutdown."""
    container: Container = fastapi_app.state.container
    init_db(container.engine())

    fastapi_app.state.enrichment_service = container.enrichment_service()
    fastapi_app.state.mutation_service = container.mutation_service()
    fastapi_app.state.session_resolver = container.session_resolver()
    fastapi_app.state.invalidation_bus = container.invalidation_bus()

    if not container.market_data_client().is_configured:
        logger.warning("FINNHUB_API_KEY is not set; watchlists will not be enriched")

    yield

    try:
        await container.market_data_client().close()
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Error closing market data client: %s", exc)
    container.engine().dispose()


def create_app(container: Container | None = None) -> FastAPI:
    """Build the FastAPI app around a container (a default one reads the environment)."""
    fastapi_app = FastAPI(
        title="Market Watchlist",
        description="Per-user stock watchlists enriched with Finnhub market data",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.container = container or Container()
    fastapi_app.include_router(watchlist_router)

    @fastapi_app.get("/")
    def health():
        """Return health check status."""
        return {"status": "ok"}

    return fastapi_app


app = create_app()


def run():
    """Run the server (uvicorn). Use for the `start` script."""
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("market_watchlist.main:app", host="127.0.0.1", port=8000)
