"""
scheduling_api.cache.redis_backend

Redis-backed cache (`redis.asyncio`).

Responsibilities:
- Store JSON-encoded values with `SET ... EX` so Redis enforces the TTL.
- Share one connection pool per process.
"""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as redis

from scheduling_api.cache.base import AbstractCache


class RedisCache(AbstractCache):
    def __init__(self, client: redis.Redis, *, namespace: str = "cache") -> None:
        self._client = client
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get(self, key: str) -> Any | None:
        raw = await self._client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, *, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        await self._client.set(self._key(key), json.dumps(value), ex=ttl_seconds)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self._client.delete(*(self._key(k) for k in keys)))

    async def ping(self) -> bool:
        return bool(await self._client.ping())


# --- Module Notes -----------------------------------------------------------
# The client is created with `decode_responses=True` (see `cache.factory`) and is owned
# by the app lifespan, which closes it; this class never closes the shared pool.
