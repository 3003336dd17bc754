"""
scheduling_api.db.repositories.api_keys

Repository for `ApiKey` and `RateLimit` entities.

Responsibilities:
- Create/delete API keys with their named rate limits.
- Look up keys (and their owners' limits) by hashed value.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from scheduling_api.db.models import ApiKey, RateLimit


class ApiKeyRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: int,
        hashed_key: str,
        note: str | None = None,
        expires_at: datetime | None = None,
        rate_limits: Iterable[tuple[str, int, int, int]] = (),
    ) -> ApiKey:
        # rate_limits: (name, limit, window_seconds, block_seconds)
        key = ApiKey(
            user_id=user_id,
            hashed_key=hashed_key,
            note=note,
            expires_at=expires_at,
            rate_limits=[
                RateLimit(name=name, limit=limit, window_seconds=window, block_seconds=block)
                for name, limit, window, block in rate_limits
            ],
        )
        self._session.add(key)
        await self._session.flush()
        return key

    async def get(self, api_key_id: uuid.UUID) -> ApiKey | None:
        stmt = (
            select(ApiKey)
            .where(ApiKey.id == api_key_id)
            .options(selectinload(ApiKey.rate_limits))
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_hash(self, hashed_key: str) -> ApiKey | None:
        stmt = select(ApiKey).where(ApiKey.hashed_key == hashed_key)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def rate_limits_for_hash(self, hashed_key: str) -> list[RateLimit]:
        stmt = (
            select(RateLimit)
            .join(ApiKey, RateLimit.api_key_id == ApiKey.id)
            .where(ApiKey.hashed_key == hashed_key)
            .order_by(RateLimit.name)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete(self, api_key: ApiKey) -> None:
        await self._session.delete(api_key)
        await self._session.flush()


# --- Module Notes -----------------------------------------------------------
# `rate_limits_for_hash` runs on the read replica for every throttled request that
# misses the cache; it is served by the unique index on `hashed_key`.
