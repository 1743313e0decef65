"""OfferRepository Protocol — interface contract for persistence layer."""
from typing import Any, Protocol

from src.cl_offer.domain.models import Offer


class OfferRepositoryProtocol(Protocol):
    async def get_by_id(self, offer_id: str) -> Offer | None: ...

    async def next_offer_number(self) -> str: ...

    async def create(self, offer: Offer) -> Offer: ...

    async def list_listed(
        self,
        category: str | None,
        location: str | None,
        verified_only: bool,
    ) -> list[Offer]: ...

    async def list_by_supplier(
        self, supplier_id: str, include_hidden: bool
    ) -> list[Offer]: ...

    async def list_all(self) -> list[Offer]: ...

    async def update_fields(self, offer_id: str, fields: dict[str, Any]) -> None: ...

    async def update_if(
        self, offer_id: str, fields: dict[str, Any], expected: dict[str, Any]
    ) -> bool: ...
