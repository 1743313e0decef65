"""Backend handle — the explicitly constructed bundle of infrastructure clients.

Replaces import-time singletons: the entry point calls create_backend() during
startup, passes the handle to every service, and closes it on shutdown.
"""

import logging
from dataclasses import dataclass, field

import redis.asyncio as aioredis

from config.settings import Settings
from src.cl_common.database import create_engine, create_session_factory
from src.cl_common.document_store import DocumentStore
from src.cl_common.events import LocalEventBus
from src.cl_common.memory_store import MemoryDocumentStore
from src.cl_common.redis_client import close_redis, create_redis
from src.cl_common.sql_store import PostgresDocumentStore

logger = logging.getLogger(__name__)


@dataclass
class Backend:
    store: DocumentStore
    events: LocalEventBus = field(default_factory=LocalEventBus)
    redis: aioredis.Redis | None = None

    async def close(self) -> None:
        await self.store.close()
        await close_redis(self.redis)


def create_backend(settings: Settings) -> Backend:
    store: DocumentStore
    if settings.DOCUMENT_STORE == "memory":
        store = MemoryDocumentStore()
    else:
        engine = create_engine(settings)
        store = PostgresDocumentStore(create_session_factory(engine), engine=engine)
    logger.info("Backend created: store=%s redis=%s", settings.DOCUMENT_STORE, bool(settings.REDIS_URL))
    return Backend(store=store, redis=create_redis(settings))
