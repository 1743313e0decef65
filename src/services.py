"""Service wiring — builds every application service on top of a Backend.

Called once by the FastAPI lifespan (or directly by tests); nothing here runs
at import time.
"""

from dataclasses import dataclass

from config.settings import Settings
from src.cl_admin.application.service import AdminService
from src.cl_common.backend import Backend
from src.cl_inventory.domain.reconciler import InventoryReconciler
from src.cl_inventory.domain.restorer import RejectionRestorer
from src.cl_notification.application.dispatcher import NotificationDispatcher
from src.cl_notification.application.emitter import NotificationEmitter
from src.cl_notification.application.service import NotificationService
from src.cl_notification.infrastructure.persistence import NotificationRepository
from src.cl_notification.infrastructure.relay import RedisNotificationRelay
from src.cl_offer.application.service import OfferService
from src.cl_offer.infrastructure.persistence import OfferRepository
from src.cl_purchase.application.service import PurchaseService
from src.cl_purchase.infrastructure.persistence import PurchaseRepository
from src.cl_user.infrastructure.persistence import UserRepository
from src.cl_watchlist.application.service import WatchlistService
from src.cl_watchlist.domain.projector import WatchlistProjector


@dataclass
class Services:
    users: UserRepository
    offers: OfferService
    purchases: PurchaseService
    watchlist: WatchlistService
    notifications: NotificationService
    admin: AdminService
    reconciler: InventoryReconciler
    restorer: RejectionRestorer
    projector: WatchlistProjector
    emitter: NotificationEmitter
    dispatcher: NotificationDispatcher
    relay: RedisNotificationRelay | None = None

    async def start(self) -> None:
        self.dispatcher.start()

    async def stop(self) -> None:
        await self.dispatcher.stop(drain=True)
        if self.relay is not None:
            self.relay.detach()


def build_services(backend: Backend, settings: Settings) -> Services:
    users = UserRepository(backend.store)
    offer_repo = OfferRepository(backend.store)
    purchase_repo = PurchaseRepository(backend.store)
    notification_repo = NotificationRepository(backend.store)

    projector = WatchlistProjector(users)
    reconciler = InventoryReconciler(
        offer_repo, purchase_repo, projector, max_retries=settings.INVENTORY_CAS_MAX_RETRIES
    )
    restorer = RejectionRestorer(
        offer_repo, purchase_repo, projector, max_retries=settings.INVENTORY_CAS_MAX_RETRIES
    )
    emitter = NotificationEmitter(notification_repo, backend.events)
    dispatcher = NotificationDispatcher(
        emitter,
        queue_size=settings.NOTIFY_QUEUE_SIZE,
        workers=settings.NOTIFY_WORKERS,
        max_attempts=settings.NOTIFY_MAX_ATTEMPTS,
        backoff_base_seconds=settings.NOTIFY_BACKOFF_BASE_SECONDS,
        dead_letter_size=settings.NOTIFY_DEAD_LETTER_SIZE,
    )

    relay = None
    if backend.redis is not None:
        relay = RedisNotificationRelay(backend.redis)
        relay.attach(backend.events)

    purchase_service = PurchaseService(
        purchase_repo,
        offer_repo,
        users,
        reconciler,
        restorer,
        dispatcher,
        fee_rate_bps=settings.PLATFORM_FEE_BPS,
    )
    return Services(
        users=users,
        offers=OfferService(offer_repo, projector),
        purchases=purchase_service,
        watchlist=WatchlistService(users, offer_repo, dispatcher),
        notifications=NotificationService(notification_repo),
        admin=AdminService(purchase_repo, dispatcher),
        reconciler=reconciler,
        restorer=restorer,
        projector=projector,
        emitter=emitter,
        dispatcher=dispatcher,
        relay=relay,
    )
