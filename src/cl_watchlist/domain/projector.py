"""Watchlist Projector — keeps user watchlists consistent with offer state.

The projection only ever evicts: once an offer can no longer be bought its id
is dropped from every watchlist that holds it. Quantities are never copied
into user documents (watchlist pages read them live from the offer), and a
later restock never re-subscribes anybody.

Eviction writes are guarded on the watchlists as they were read, so a
concurrent add or remove by a user is never overwritten: the batch is
rejected as a whole and the watchers are queried again.

Best-effort: the offer mutation that triggered a projection is already
committed, so any failure here is logged and reported as "no users affected".
"""

import logging

from src.cl_common.errors import ConcurrentUpdateError
from src.cl_user.infrastructure.persistence import UserRepository

logger = logging.getLogger(__name__)


class WatchlistProjector:
    def __init__(self, users: UserRepository, max_retries: int = 5) -> None:
        self._users = users
        self._max_retries = max_retries

    async def project(self, offer_id: str, new_quantity: int) -> set[str]:
        """Apply a quantity change to watchlists; returns the affected user ids."""
        try:
            if new_quantity > 0:
                return {user.id for user in await self._users.list_watching(offer_id)}
            return await self._evict_all(offer_id, new_quantity)
        except Exception:
            logger.warning(
                "Watchlist projection failed for offer %s (quantity=%d)",
                offer_id, new_quantity, exc_info=True,
            )
            return set()

    async def _evict_all(self, offer_id: str, new_quantity: int) -> set[str]:
        for attempt in range(1, self._max_retries + 1):
            watchers = await self._users.list_watching(offer_id)
            if not watchers:
                return set()
            if await self._users.remove_from_watchlists(watchers, offer_id):
                logger.info(
                    "Evicted offer %s from %d watchlists (quantity=%d)",
                    offer_id, len(watchers), new_quantity,
                )
                return {user.id for user in watchers}
            logger.debug(
                "Watchlists changed during eviction of offer %s, retry %d/%d",
                offer_id, attempt, self._max_retries,
            )
        raise ConcurrentUpdateError("users", offer_id)

    async def evict(self, offer_id: str) -> set[str]:
        """Unconditional eviction, for offers deleted or expired regardless of stock."""
        return await self.project(offer_id, 0)
