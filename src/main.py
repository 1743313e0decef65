"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import Settings, settings as default_settings
from src.cl_admin.api.router import router as admin_router
from src.cl_common.backend import Backend, create_backend
from src.cl_common.errors import AppError
from src.cl_common.response import error_body
from src.cl_gateway.middleware.rate_limit import RateLimitMiddleware
from src.cl_gateway.middleware.request_log import RequestLogMiddleware
from src.cl_notification.api.router import router as notification_router
from src.cl_offer.api.router import router as offer_router
from src.cl_purchase.api.router import router as purchase_router
from src.cl_user.api.router import router as user_router
from src.cl_watchlist.api.router import router as watchlist_router
from src.services import build_services

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def attach_backend(app: FastAPI, backend: Backend) -> None:
    app.state.backend = backend
    app.state.services = build_services(backend, app.state.settings)


def create_app(settings: Settings | None = None, backend: Backend | None = None) -> FastAPI:
    """Build the application.

    With no backend the lifespan creates one from settings on startup and
    closes it on shutdown. A backend passed in (tests, scripts) is wired
    immediately and left open; its owner closes it.
    """
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Startup: build backend + services, start notification workers. Shutdown: drain, close."""
        owns_backend = getattr(app.state, "backend", None) is None
        if owns_backend:
            attach_backend(app, create_backend(settings))
        await app.state.services.start()
        logger.info("%s %s started", settings.APP_NAME, VERSION)
        yield
        await app.state.services.stop()
        if owns_backend:
            await app.state.backend.close()

    app = FastAPI(
        title=settings.APP_NAME,
        version=VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.settings = settings
    if backend is not None:
        attach_backend(app, backend)

    # Last added runs first: request log wraps the rate limiter
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLogMiddleware)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.http_status, content=error_body(exc, request))

    app.include_router(offer_router, prefix="/api/v1")
    app.include_router(purchase_router, prefix="/api/v1")
    app.include_router(watchlist_router, prefix="/api/v1")
    app.include_router(notification_router, prefix="/api/v1")
    app.include_router(user_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": VERSION}

    return app


app = create_app()
