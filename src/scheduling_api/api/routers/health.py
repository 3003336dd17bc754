"""
scheduling_api.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`) validating the primary DB, the read replica and
  the cache.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.api.deps import cache_dep, db_read_session, db_write_session
from scheduling_api.cache.base import AbstractCache

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    # Liveness: process is up and serving HTTP.
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(
    write_session: AsyncSession = Depends(db_write_session),
    read_session: AsyncSession = Depends(db_read_session),
    cache: AbstractCache = Depends(cache_dep),
) -> dict[str, str]:
    # Readiness: verify critical dependencies are reachable; failures surface as 503/500.
    await write_session.execute(text("SELECT 1"))
    await read_session.execute(text("SELECT 1"))
    await cache.ping()
    return {"status": "ready"}


# --- Module Notes -----------------------------------------------------------
# Kubernetes typically uses /healthz for liveness and /readyz for readiness gating.
