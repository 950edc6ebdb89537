"""API routers.

Includes routes for:
- /watchlist - the session user's watchlist (enriched and raw), add/remove
- /watchlist/symbols - saved symbols looked up by email
- /watchlist/stream - WebSocket cache-invalidation signals
"""
from market_watchlist.routers.watchlist import router as watchlist_router

__all__ = ["watchlist_router"]
