"""PurchaseRepository Protocol — interface contract for persistence layer."""
from typing import Any, Protocol

from src.cl_purchase.domain.models import Purchase


class PurchaseRepositoryProtocol(Protocol):
    async def get_by_id(self, purchase_id: str) -> Purchase | None: ...

    async def create(self, purchase: Purchase) -> Purchase: ...

    async def update_fields(self, purchase_id: str, fields: dict[str, Any]) -> None: ...

    async def update_if(
        self, purchase_id: str, fields: dict[str, Any], expected: dict[str, Any]
    ) -> bool: ...

    async def list_by_buyer(self, buyer_id: str) -> list[Purchase]: ...

    async def list_by_seller(self, seller_id: str) -> list[Purchase]: ...

    async def list_all(self, status: str | None) -> list[Purchase]: ...
