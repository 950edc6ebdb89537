"""WebSocket stream handling: push watchlist invalidation events to a client."""
import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect

from market_watchlist.auth import SessionResolverABC
from market_watchlist.schemas import InvalidationEvent
from market_watchlist.services.invalidation import (WATCHLIST_SCOPE,
                                                    InvalidationBus)

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED_CLOSE_CODE = 4001


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    """Drain client messages until the client disconnects."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def handle_invalidation_stream(
    websocket: WebSocket,
    session_resolver: SessionResolverABC,
    invalidation_bus: InvalidationBus,
) -> None:
    """Accept WebSocket, authenticate, then push InvalidationEvents for the user.

    Sends a ``ready`` event with the current view version first, then one
    ``invalidate`` event per watchlist mutation until the client disconnects.
    """
    await websocket.accept()
    disconnected: asyncio.Task | None = None
    try:
        user = await session_resolver.resolve(websocket.headers)
        if user is None:
            await websocket.close(
                code=NOT_AUTHENTICATED_CLOSE_CODE, reason="Not authenticated"
            )
            return

        disconnected = asyncio.create_task(_wait_for_disconnect(websocket))
        async with invalidation_bus.subscription(user.id) as queue:
            ready = InvalidationEvent(
                event="ready",
                scope=WATCHLIST_SCOPE,
                user_id=user.id,
                version=invalidation_bus.version(user.id),
            )
            await websocket.send_json(ready.model_dump(mode="json"))
            while not disconnected.done():
                next_event = asyncio.ensure_future(queue.get())
                await asyncio.wait(
                    {next_event, disconnected}, return_when=asyncio.FIRST_COMPLETED
                )
                if not next_event.done():
                    next_event.cancel()
                    break
                await websocket.send_json(next_event.result().model_dump(mode="json"))
    except WebSocketDisconnect:
        logger.debug("Invalidation stream client disconnected")
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Invalidation stream error: %s", exc)
        try:
            await websocket.close(code=1011, reason="Stream error")
        except Exception as close_exc:  # pylint: disable=broad-except
            logger.debug("Close after stream error failed: %s", close_exc)
    finally:
        if disconnected is not None:
            disconnected.cancel()
