"""FastAPI dependency injection: app.state holds singletons; Depends() resolves them.

Lifespan (main.py) resolves services from the container once and attaches
them to app.state; these getters are used by Depends().
"""
from typing import Annotated

from fastapi import Depends, Request, WebSocket

from market_watchlist.auth import SessionResolverABC
from market_watchlist.services import (InvalidationBus,
                                       WatchlistEnrichmentService,
                                       WatchlistMutationService)


def get_enrichment_service(request: Request) -> WatchlistEnrichmentService:
    """Resolve the watchlist read service from app.state (created at startup)."""
    return request.app.state.enrichment_service


def get_mutation_service(request: Request) -> WatchlistMutationService:
    """Resolve the watchlist add/remove service from app.state."""
    return request.app.state.mutation_service


def get_session_resolver_ws(websocket: WebSocket) -> SessionResolverABC:
    """Resolve the session resolver for WebSocket routes."""
    return websocket.scope["app"].state.session_resolver


def get_invalidation_bus_ws(websocket: WebSocket) -> InvalidationBus:
    """Resolve the invalidation bus for WebSocket routes."""
    return websocket.scope["app"].state.invalidation_bus


# Type aliases for route injection
EnrichmentService = Annotated[WatchlistEnrichmentService, Depends(get_enrichment_service)]
MutationService = Annotated[WatchlistMutationService, Depends(get_mutation_service)]
SessionResolverWs = Annotated[SessionResolverABC, Depends(get_session_resolver_ws)]
InvalidationBusWs = Annotated[InvalidationBus, Depends(get_invalidation_bus_ws)]
