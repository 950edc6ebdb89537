"""Service utilities (WebSocket stream handling)."""
from market_watchlist.services.utils.stream_handler import \
    handle_invalidation_stream

__all__ = ["handle_invalidation_stream"]
