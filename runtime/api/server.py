"""
FastAPI application factory for the storefront back-office.

Responsibilities:
- build the shared components (DocumentStore, SessionRegistry,
  LoginRateLimiter, UploadStore, UploadGarbageCollector, CatalogService)
  and hang them on `app.state.context`
- map domain exceptions onto JSON error responses
- own the background lifecycle: startup orphan cleanup, periodic session
  and rate-limit sweeps, final save on shutdown
- include the public and admin routes

Run with:

    uvicorn runtime.api.server:create_app --factory
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from configs.logging_config import configure_logging
from configs.settings import Settings, settings as default_settings
from exceptions.exceptions import (
    AuthenticationError,
    CategoryInUseError,
    InvalidUploadError,
    NotFoundError,
    RateLimitExceeded,
    StoreWriteError,
    ValidationFailed,
)
from ..services.catalog_service import CatalogService
from ..store.document_store import DocumentStore
from ..store.rate_limiter import LoginRateLimiter
from ..store.session_store import SessionRegistry
from ..store.upload_gc import UploadGarbageCollector
from ..store.upload_store import UploadStore
from . import admin_routes, public_routes
from .dependencies import AppContext


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Component construction
# ---------------------------------------------------------------------------


def build_context(app_settings: Settings) -> AppContext:
    """Construct every shared component from settings and load the store."""
    store = DocumentStore(
        app_settings.data_file,
        admin_username=app_settings.admin_username,
        admin_password_hash=app_settings.admin_password_hash,
        lock_timeout=app_settings.save_lock_timeout,
        strip_legacy_categories=app_settings.strip_legacy_categories,
    )
    store.load()

    uploads = UploadStore(app_settings.uploads_dir, max_bytes=app_settings.max_upload_bytes)
    return AppContext(
        settings=app_settings,
        store=store,
        sessions=SessionRegistry(ttl_seconds=app_settings.session_ttl_seconds),
        rate_limiter=LoginRateLimiter(
            window_seconds=app_settings.login_window_seconds,
            max_attempts=app_settings.login_max_attempts,
        ),
        uploads=uploads,
        gc=UploadGarbageCollector(store, uploads),
        catalog=CatalogService(store, uploads),
    )


async def run_periodically(interval: float, func: Callable[[], int], name: str) -> None:
    """Call `func` every `interval` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            func()
        except Exception:
            # A failed sweep must not stop the next one.
            logger.exception("[API] Periodic task %s failed", name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ctx: AppContext = app.state.context
    logger.info("[API] Server starting: data=%s uploads=%s", ctx.settings.data_file, ctx.settings.uploads_dir)

    # A stand-in document references no uploads and must not be written
    # over the file it replaced.
    recovered = ctx.store.recovered
    if recovered:
        logger.warning(
            "[API] Store document was unreadable; skipping startup cleanup and final save"
        )
    elif ctx.settings.cleanup_on_startup:
        ctx.gc.collect()

    interval = ctx.settings.sweep_interval_seconds
    tasks = [
        asyncio.create_task(
            run_periodically(interval, ctx.sessions.sweep_expired, "session-sweep")
        ),
        asyncio.create_task(
            run_periodically(interval, ctx.rate_limiter.sweep_expired, "rate-limit-sweep")
        ),
    ]
    try:
        yield
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        if not recovered:
            logger.info("[API] Shutting down, saving store document")
            try:
                await ctx.store.save()
            except StoreWriteError as e:
                logger.error("[API] Final save failed: %s", e)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationFailed)
    async def _validation_failed(request: Request, exc: ValidationFailed):
        content = {"error": exc.message, "details": exc.errors}
        if isinstance(exc, CategoryInUseError):
            content["count"] = exc.count
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(InvalidUploadError)
    async def _invalid_upload(request: Request, exc: InvalidUploadError):
        return JSONResponse(status_code=400, content={"error": exc.reason})

    @app.exception_handler(AuthenticationError)
    async def _unauthorized(request: Request, exc: AuthenticationError):
        return JSONResponse(status_code=401, content={"success": False, "error": exc.reason})

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404, content={"error": f"{exc.kind.capitalize()} not found"}
        )

    @app.exception_handler(RateLimitExceeded)
    async def _rate_limited(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"error": "Too many attempts. Try again later."},
            headers={"Retry-After": str(max(int(exc.retry_after), 1))},
        )

    @app.exception_handler(StoreWriteError)
    async def _store_write_failed(request: Request, exc: StoreWriteError):
        logger.error("[API] %s %s failed to persist: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    app_settings = app_settings or default_settings
    configure_logging(app_settings)

    app = FastAPI(title="Storefront Back-Office", lifespan=lifespan)
    app.state.context = build_context(app_settings)

    register_exception_handlers(app)
    app.include_router(public_routes.router)
    app.include_router(admin_routes.router)
    return app
