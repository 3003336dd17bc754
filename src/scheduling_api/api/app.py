"""
scheduling_api.api.app

FastAPI app factory for the scheduling API.

Responsibilities:
- Build the FastAPI application and register routers, middleware and exception handlers.
- Initialize and dispose shared infrastructure (DB engines, Redis, cache, rate limiter,
  job queue) in the app lifespan.
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from scheduling_api import __version__
from scheduling_api.api.exception_handlers import register_exception_handlers
from scheduling_api.api.routers.api_keys import router as api_keys_router
from scheduling_api.api.routers.bookings.v2024_04_15 import router as bookings_2024_04_15
from scheduling_api.api.routers.bookings.v2024_08_13 import router as bookings_2024_08_13
from scheduling_api.api.routers.dev_auth import router as dev_auth_router
from scheduling_api.api.routers.health import router as health_router
from scheduling_api.api.routers.me import router as me_router
from scheduling_api.api.routers.oauth import router as oauth_router
from scheduling_api.api.throttling import enforce_rate_limit
from scheduling_api.api.versioning import ApiVersionMiddleware
from scheduling_api.cache.factory import build_cache, create_redis_client
from scheduling_api.db.init_db import init_db
from scheduling_api.db.session import create_database_clients
from scheduling_api.jobs.queue import create_job_queue
from scheduling_api.observability.logging import configure_logging, get_logger
from scheduling_api.observability.middleware import RequestContextMiddleware
from scheduling_api.ratelimit.factory import build_rate_limiter
from scheduling_api.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, read_replica=bool(settings.database_read_url))
        # Routers obtain sessions/cache/limiter via dependencies (see `api.deps`).
        db = create_database_clients(settings)
        redis_client = create_redis_client(settings) if settings.redis_url else None
        app.state.db = db
        app.state.cache = build_cache(redis_client)
        app.state.rate_limiter = build_rate_limiter(redis_client)
        app.state.jobs = await create_job_queue(settings)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod should use Alembic migrations.
            await init_db(db.write_engine)
        try:
            yield
        finally:
            await app.state.jobs.close()
            if redis_client is not None:
                await redis_client.aclose()
            await db.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Scheduling Platform API",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Last added runs first: request context wraps version resolution.
    app.add_middleware(ApiVersionMiddleware, header_name=settings.api_version_header)
    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)

    throttled = [Depends(enforce_rate_limit)]
    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(oauth_router, dependencies=throttled)
    app.include_router(me_router, dependencies=throttled)
    app.include_router(api_keys_router, dependencies=throttled)
    app.include_router(bookings_2024_04_15, dependencies=throttled)
    app.include_router(bookings_2024_08_13, dependencies=throttled)

    return app


# --- Module Notes -----------------------------------------------------------
# This file is intentionally small: app composition stays here; business logic stays
# in services, HTTP adaptation in routers.
