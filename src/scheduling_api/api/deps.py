"""
scheduling_api.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, read/write DB sessions, the cache, the
  rate limiter and the job queue.
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.cache.base import AbstractCache
from scheduling_api.db.session import DatabaseClients
from scheduling_api.jobs.queue import JobQueue
from scheduling_api.ratelimit.base import AbstractRateLimiter
from scheduling_api.settings import Settings


def settings_dep(request: Request) -> Settings:
    # Settings are bound to the app in `api.app.create_app`.
    return request.app.state.settings  # type: ignore[no-any-return]


def database_from_app(request: Request) -> DatabaseClients:
    # DB clients are created in the app lifespan (see `api.app`).
    return request.app.state.db  # type: ignore[no-any-return]


async def db_read_session(
    db: DatabaseClients = Depends(database_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped replica session; never used for writes.
    async with db.read_sessionmaker() as session:
        yield session


async def db_write_session(
    db: DatabaseClients = Depends(database_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped primary session. Commit/rollback is managed explicitly by the service layer.
    async with db.write_sessionmaker() as session:
        yield session


def cache_dep(request: Request) -> AbstractCache:
    return request.app.state.cache  # type: ignore[no-any-return]


def rate_limiter_dep(request: Request) -> AbstractRateLimiter:
    return request.app.state.rate_limiter  # type: ignore[no-any-return]


def job_queue_dep(request: Request) -> JobQueue:
    return request.app.state.jobs  # type: ignore[no-any-return]


# --- Module Notes -----------------------------------------------------------
# Tests can swap any of these via `app.dependency_overrides`.
