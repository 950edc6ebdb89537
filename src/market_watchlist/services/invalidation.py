"""Cache invalidation signals for per-user watchlist views.

Each user has a view version that increases on every successful mutation.
Subscribers (e.g. WebSocket clients rendering the watchlist) receive an
InvalidationEvent and must re-fetch.
"""
import asyncio
import logging
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from market_watchlist.schemas import InvalidationEvent

logger = logging.getLogger(__name__)

WATCHLIST_SCOPE = "watchlist"


class InvalidationBus:
    """In-process publisher of watchlist invalidation events, scoped by user.

    Not thread-safe; publish and subscribe from the event loop.
    """

    def __init__(self, max_queue_size: int = 16) -> None:
        """Initialize with no subscribers.

        Args:
            max_queue_size: Pending events kept per subscriber; when full the
                oldest event is dropped so publishers never block.
        """
        self._max_queue_size = max_queue_size
        self._versions: dict[str, int] = defaultdict(int)
        self._subscribers: dict[str, set[asyncio.Queue[InvalidationEvent]]] = (
            defaultdict(set)
        )

    def version(self, user_id: str) -> int:
        """Current view version for the user (0 before any mutation)."""
        return self._versions.get(user_id, 0)

    def subscriber_count(self, user_id: str) -> int:
        return len(self._subscribers.get(user_id, ()))

    def publish(self, user_id: str) -> InvalidationEvent:
        """Mark the user's watchlist view stale and notify subscribers."""
        self._versions[user_id] += 1
        event = InvalidationEvent(
            scope=WATCHLIST_SCOPE, user_id=user_id, version=self._versions[user_id]
        )
        for queue in self._subscribers.get(user_id, ()):
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(event)
        logger.debug("Invalidated %s view for user %s (v%d)", WATCHLIST_SCOPE, user_id, event.version)
        return event

    @asynccontextmanager
    async def subscription(
        self, user_id: str
    ) -> AsyncIterator[asyncio.Queue[InvalidationEvent]]:
        """Register a queue for the user's events for the duration of the block."""
        queue: asyncio.Queue[InvalidationEvent] = asyncio.Queue(
            maxsize=self._max_queue_size
        )
        self._subscribers[user_id].add(queue)
        try:
            yield queue
        finally:
            subscribers = self._subscribers.get(user_id)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    del self._subscribers[user_id]
