"""Watchlist error taxonomy.

Services raise these internally and translate them into result values;
none of them cross the service boundary.
"""


class WatchlistError(Exception):
    """Base error carrying a short user-facing message."""

    message = "Watchlist operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class NotAuthenticatedError(WatchlistError):
    message = "Not authenticated"


class InvalidPayloadError(WatchlistError):
    message = "Invalid payload"


class AlreadyInWatchlistError(WatchlistError):
    message = "Already in watchlist"


class ConfigurationMissingError(WatchlistError):
    message = "Market data API key not configured"


class UpstreamUnavailableError(WatchlistError):
    """Database or identity store could not be reached."""

    message = "Upstream service unavailable"


class EnrichmentPartialFailure(WatchlistError):
    """Market data for a single symbol could not be fetched or parsed."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(f"Failed to enrich '{symbol}'")


class DuplicateEntryError(Exception):
    """The store rejected an insert on the (user_id, symbol) unique constraint."""

    def __init__(self, user_id: str, symbol: str) -> None:
        self.user_id = user_id
        self.symbol = symbol
        super().__init__(f"Duplicate watchlist entry for user '{user_id}': {symbol}")
