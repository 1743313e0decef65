"""Integration-test fixtures.

Each test gets a fresh app over an in-memory store. httpx's ASGITransport
does not run the lifespan, so the fixture starts and stops the services
itself.
"""

from collections.abc import AsyncGenerator, Callable

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config.settings import Settings, settings
from src.cl_common.backend import Backend
from src.cl_common.memory_store import MemoryDocumentStore
from src.cl_gateway.auth.jwt_handler import create_access_token
from src.main import create_app


@pytest_asyncio.fixture
async def api_settings() -> Settings:
    return settings.model_copy(update={"NOTIFY_BACKOFF_BASE_SECONDS": 0})


@pytest_asyncio.fixture
async def app(store: MemoryDocumentStore, api_settings: Settings):
    application = create_app(api_settings, Backend(store=store))
    await application.state.services.start()
    yield application
    await application.state.services.stop()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def auth(api_settings: Settings) -> Callable[[str], dict[str, str]]:
    """Bearer header for a user id; seed the user document separately."""

    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id, api_settings)}"}

    return _headers
