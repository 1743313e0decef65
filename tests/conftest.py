"""Shared test fixtures.

Environment defaults are set before any project import: config.settings
builds Settings() at import time and JWT_SECRET is required.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DOCUMENT_STORE", "memory")
os.environ.setdefault("REDIS_URL", "")

from collections.abc import Awaitable, Callable  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402

from src.cl_common.document_store import DocumentStore  # noqa: E402
from src.cl_common.enums import Collection, OfferStatus  # noqa: E402
from src.cl_common.memory_store import MemoryDocumentStore  # noqa: E402

SeedFn = Callable[..., Awaitable[str]]


def offer_fields(**overrides: Any) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "offer_number": "oid000001",
        "title": "Surplus A4 paper",
        "description": "500-sheet reams, unopened",
        "category": "office",
        "location": "Kowloon",
        "unit": "ream",
        "supplier_id": "seller-1",
        "supplier_company": "Paper Co",
        "supplier_verified": True,
        "quantity": 10,
        "min_order_quantity": 1,
        "original_price_cents": 5000,
        "current_price_cents": 3000,
        "tags": ["paper"],
        "images": [],
        "status": OfferStatus.ACTIVE.value,
        "deleted": False,
        "deleted_at": None,
        "created_at": "2026-01-01T00:00:00+00:00",
        "updated_at": "2026-01-01T00:00:00+00:00",
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def seed_offer(store: DocumentStore) -> SeedFn:
    async def _seed(offer_id: str = "offer-1", **overrides: Any) -> str:
        return await store.add_document(
            Collection.OFFERS.value, offer_fields(**overrides), doc_id=offer_id
        )

    return _seed


@pytest.fixture
def seed_user(store: DocumentStore) -> SeedFn:
    async def _seed(
        user_id: str,
        watchlist: list[str] | None = None,
        role: str = "user",
        company: str = "",
        is_verified: bool = False,
    ) -> str:
        fields: dict[str, Any] = {
            "email": f"{user_id}@example.com",
            "company": company or user_id.title(),
            "role": role,
            "is_verified": is_verified,
        }
        if watchlist is not None:
            fields["watchlist"] = watchlist
        return await store.add_document(Collection.USERS.value, fields, doc_id=user_id)

    return _seed


@pytest.fixture
async def services(store: MemoryDocumentStore):
    """Every application service over the in-memory store, notification workers running."""
    from config.settings import settings
    from src.cl_common.backend import Backend
    from src.services import build_services

    built = build_services(Backend(store=store), settings.model_copy(update={"NOTIFY_BACKOFF_BASE_SECONDS": 0}))
    await built.start()
    yield built
    await built.stop()


@pytest.fixture
def profile(store: MemoryDocumentStore):
    """Load a seeded user as the UserProfile the services expect."""
    from src.cl_user.infrastructure.persistence import UserRepository

    async def _load(user_id: str):
        user = await UserRepository(store).get_by_id(user_id)
        assert user is not None, f"seed user {user_id} first"
        return user

    return _load
