"""Watchlist mutations: add and remove symbols for the session's user.

Both operations return an ActionResult and never raise to the caller.
"""
import asyncio
import logging
from collections.abc import Mapping

from market_watchlist.auth import SessionResolverABC, UserIdentity
from market_watchlist.db import WatchlistRepository
from market_watchlist.exceptions import (AlreadyInWatchlistError,
                                         DuplicateEntryError,
                                         InvalidPayloadError,
                                         NotAuthenticatedError,
                                         UpstreamUnavailableError,
                                         WatchlistError)
from market_watchlist.providers.core import (normalize_company,
                                             normalize_stock_symbol)
from market_watchlist.schemas import ActionFailed, ActionOk, ActionResult
from market_watchlist.services.invalidation import InvalidationBus

logger = logging.getLogger(__name__)

ADD_FAILED = "Failed to add to watchlist"
REMOVE_FAILED = "Failed to remove from watchlist"


class WatchlistMutationService:
    """Adds/removes watchlist entries and signals view invalidation."""

    def __init__(
        self,
        repository: WatchlistRepository,
        session_resolver: SessionResolverABC,
        invalidation_bus: InvalidationBus,
    ) -> None:
        self._repository = repository
        self._sessions = session_resolver
        self._invalidation = invalidation_bus

    async def _require_user(self, headers: Mapping[str, str]) -> UserIdentity:
        user = await self._sessions.resolve(headers)
        if user is None:
            raise NotAuthenticatedError()
        return user

    async def add_to_watchlist(
        self, headers: Mapping[str, str], symbol: str, company: str
    ) -> ActionResult:
        """Save symbol for the session's user; a repeated add is a no-op success.

        Args:
            headers: Request headers carrying the session token.
            symbol: Ticker; trimmed and upper-cased before saving.
            company: Display name; trimmed before saving.
        """
        try:
            user = await self._require_user(headers)
            sym = normalize_stock_symbol(symbol)
            comp = normalize_company(company)
            if not sym or not comp:
                raise InvalidPayloadError()
            created = await asyncio.to_thread(
                self._repository.upsert_on_insert, user.id, sym, comp
            )
        except DuplicateEntryError as exc:
            logger.info("add_to_watchlist: %s", exc)
            return ActionFailed(error=AlreadyInWatchlistError().message)
        except UpstreamUnavailableError:
            logger.exception("add_to_watchlist: store unavailable")
            return ActionFailed(error=ADD_FAILED)
        except WatchlistError as exc:
            logger.debug("add_to_watchlist rejected: %s", exc.message)
            return ActionFailed(error=exc.message)
        except Exception:  # pylint: disable=broad-except
            logger.exception("add_to_watchlist error")
            return ActionFailed(error=ADD_FAILED)

        if not created:
            logger.debug("%s already in watchlist for user %s", sym, user.id)
        self._invalidation.publish(user.id)
        return ActionOk()

    async def remove_from_watchlist(
        self, headers: Mapping[str, str], symbol: str
    ) -> ActionResult:
        """Remove symbol for the session's user; removing an absent symbol succeeds."""
        try:
            user = await self._require_user(headers)
            sym = normalize_stock_symbol(symbol)
            if not sym:
                raise InvalidPayloadError()
            await asyncio.to_thread(self._repository.delete, user.id, sym)
        except UpstreamUnavailableError:
            logger.exception("remove_from_watchlist: store unavailable")
            return ActionFailed(error=REMOVE_FAILED)
        except WatchlistError as exc:
            logger.debug("remove_from_watchlist rejected: %s", exc.message)
            return ActionFailed(error=exc.message)
        except Exception:  # pylint: disable=broad-except
            logger.exception("remove_from_watchlist error")
            return ActionFailed(error=REMOVE_FAILED)

        self._invalidation.publish(user.id)
        return ActionOk()
