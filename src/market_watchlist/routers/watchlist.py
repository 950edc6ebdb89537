"""Watchlist routes. Handlers only call the services; results never raise."""
import logging

from fastapi import APIRouter, Query, Request, WebSocket

from market_watchlist.deps import (EnrichmentService, InvalidationBusWs,
                                   MutationService, SessionResolverWs)
from market_watchlist.schemas import (ActionResult, AddToWatchlistRequest,
                                      EnrichedWatchlistRow, WatchlistItem)
from market_watchlist.services.utils import handle_invalidation_stream

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/watchlist", tags=["watchlist"])


@router.get("", response_model=list[EnrichedWatchlistRow])
async def get_watchlist(
    request: Request, service: EnrichmentService
) -> list[EnrichedWatchlistRow]:
    """Get the session user's watchlist with price, change, market cap and P/E.

    Empty when not signed in. Rows whose market data failed carry only
    symbol, company and added_at.
    """
    return await service.get_watchlist_with_data(request.headers)


@router.get("/items", response_model=list[WatchlistItem])
async def get_watchlist_items(
    request: Request, service: EnrichmentService
) -> list[WatchlistItem]:
    """Get the session user's raw watchlist entries (no market data)."""
    return await service.get_user_watchlist(request.headers)


@router.get("/symbols", response_model=list[str])
async def get_watchlist_symbols(
    service: EnrichmentService,
    email: str = Query(default="", description="Email of the watchlist owner"),
) -> list[str]:
    """Get the symbols saved by the user with this email (sorted; empty if unknown)."""
    return sorted(await service.get_watchlist_symbols_by_email(email))


@router.post("", response_model=ActionResult)
async def add_to_watchlist(
    payload: AddToWatchlistRequest, request: Request, service: MutationService
) -> ActionResult:
    """Add a symbol to the session user's watchlist.

    Returns {"ok": true} or {"ok": false, "error": "..."}; never an HTTP error.
    """
    return await service.add_to_watchlist(
        request.headers, payload.symbol, payload.company
    )


@router.delete("/{symbol}", response_model=ActionResult)
async def remove_from_watchlist(
    symbol: str, request: Request, service: MutationService
) -> ActionResult:
    """Remove a symbol from the session user's watchlist (absent symbols succeed)."""
    return await service.remove_from_watchlist(request.headers, symbol)


@router.websocket("/stream")
async def stream_invalidations(
    websocket: WebSocket,
    session_resolver: SessionResolverWs,
    invalidation_bus: InvalidationBusWs,
) -> None:
    """Push watchlist invalidation events for the signed-in user.

    First message: {"event": "ready", "version": n, ...}. Then one
    {"event": "invalidate", ...} per add/remove. Closes with 4001 when
    not signed in.
    """
    await handle_invalidation_stream(websocket, session_resolver, invalidation_bus)
