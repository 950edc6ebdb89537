"""Service layer: watchlist mutation, enrichment and invalidation signals."""
from market_watchlist.services.invalidation import InvalidationBus
from market_watchlist.services.watchlist_enrichment import \
    WatchlistEnrichmentService
from market_watchlist.services.watchlist_mutation import \
    WatchlistMutationService

__all__ = [
    "InvalidationBus",
    "WatchlistEnrichmentService",
    "WatchlistMutationService",
]
