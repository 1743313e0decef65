"""WatchlistService — user-driven watchlist edits.

Edits are compare-and-swap on the stored array so that a concurrent eviction
by the projector is never overwritten by a stale add or remove.
"""

import logging

from src.cl_common.errors import ConcurrentUpdateError, OfferNotFoundError, OfferNotPurchasableError
from src.cl_notification.application.dispatcher import NotificationDispatcher
from src.cl_notification.domain import messages
from src.cl_offer.application.schemas import OfferResponse
from src.cl_offer.domain.repository import OfferRepositoryProtocol
from src.cl_user.domain.models import dedupe_watchlist
from src.cl_user.infrastructure.persistence import UserRepository
from src.cl_watchlist.application.schemas import WatchlistChangeResponse, WatchlistResponse

logger = logging.getLogger(__name__)

_MAX_RETRIES = 5


class WatchlistService:
    def __init__(
        self,
        users: UserRepository,
        offers: OfferRepositoryProtocol,
        dispatcher: NotificationDispatcher,
    ) -> None:
        self._users = users
        self._offers = offers
        self._dispatcher = dispatcher

    async def add(self, user_id: str, offer_id: str) -> WatchlistChangeResponse:
        offer = await self._offers.get_by_id(offer_id)
        if offer is None:
            raise OfferNotFoundError(offer_id)
        if not offer.is_purchasable:
            raise OfferNotPurchasableError(offer_id)

        for _ in range(_MAX_RETRIES):
            current = await self._users.get_raw_watchlist(user_id)
            if current is not None and offer_id in current:
                return WatchlistChangeResponse(offer_id=offer_id, watching=True, changed=False)
            updated = dedupe_watchlist([*(current or []), offer_id])
            if await self._users.replace_watchlist_if(user_id, updated, current):
                await self._ensure_still_purchasable(user_id, offer_id)
                logger.info("User %s now watching offer %s", user_id, offer_id)
                self._dispatcher.submit(messages.watchlist_added(user_id, offer_id, offer.title))
                return WatchlistChangeResponse(offer_id=offer_id, watching=True, changed=True)
        raise ConcurrentUpdateError("users", user_id)

    async def _ensure_still_purchasable(self, user_id: str, offer_id: str) -> None:
        # The offer may have sold out, and been evicted, between the check and the write
        offer = await self._offers.get_by_id(offer_id)
        if offer is not None and offer.is_purchasable:
            return
        await self.remove(user_id, offer_id)
        logger.info("Offer %s stopped being purchasable while user %s added it", offer_id, user_id)
        raise OfferNotPurchasableError(offer_id)

    async def remove(self, user_id: str, offer_id: str) -> WatchlistChangeResponse:
        for _ in range(_MAX_RETRIES):
            current = await self._users.get_raw_watchlist(user_id)
            if current is None or offer_id not in current:
                return WatchlistChangeResponse(offer_id=offer_id, watching=False, changed=False)
            updated = [oid for oid in current if oid != offer_id]
            if await self._users.replace_watchlist_if(user_id, updated, current):
                logger.info("User %s stopped watching offer %s", user_id, offer_id)
                return WatchlistChangeResponse(offer_id=offer_id, watching=False, changed=True)
        raise ConcurrentUpdateError("users", user_id)

    async def list_watchlist(self, user_id: str) -> WatchlistResponse:
        """Resolved live against offers; entries that can no longer be bought are hidden."""
        offer_ids = dedupe_watchlist(await self._users.get_raw_watchlist(user_id) or [])
        items = []
        for offer_id in offer_ids:
            offer = await self._offers.get_by_id(offer_id)
            if offer is not None and offer.is_purchasable:
                items.append(OfferResponse.from_domain(offer))
        return WatchlistResponse(offer_ids=[o.id for o in items], items=items)
