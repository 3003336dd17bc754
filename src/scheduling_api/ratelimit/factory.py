from __future__ import annotations

import redis.asyncio as redis

from scheduling_api.ratelimit.base import AbstractRateLimiter
from scheduling_api.ratelimit.memory import InMemoryRateLimiter
from scheduling_api.ratelimit.redis_backend import RedisRateLimiter


def build_rate_limiter(client: redis.Redis | None) -> AbstractRateLimiter:
    if client is None:
        return InMemoryRateLimiter()
    return RedisRateLimiter(client)
