from __future__ import annotations

import redis.asyncio as redis

from scheduling_api.cache.base import AbstractCache
from scheduling_api.cache.memory import InMemoryCache
from scheduling_api.cache.redis_backend import RedisCache
from scheduling_api.settings import Settings


def create_redis_client(settings: Settings) -> redis.Redis:
    if not settings.redis_url:
        raise ValueError("redis_url is not configured")
    return redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        health_check_interval=30,
    )


def build_cache(client: redis.Redis | None) -> AbstractCache:
    # Without Redis every process keeps its own cache; fine for dev/test.
    if client is None:
        return InMemoryCache()
    return RedisCache(client)
