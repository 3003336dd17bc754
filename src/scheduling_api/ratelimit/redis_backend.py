"""
scheduling_api.ratelimit.redis_backend

Redis fixed-window rate limiter shared by every API worker.

Responsibilities:
- Count units per window with INCRBY + EXPIRE in one MULTI/EXEC round trip.
- Track block periods in a separate key whose TTL is the block duration.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable

import redis.asyncio as redis

from scheduling_api.ratelimit.base import AbstractRateLimiter, RateLimitResult, validate_consume_args


class RedisRateLimiter(AbstractRateLimiter):
    def __init__(
        self,
        client: redis.Redis,
        *,
        namespace: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._namespace = namespace
        self._clock = clock

    async def consume(
        self,
        key: str,
        *,
        limit: int,
        window_seconds: int,
        block_seconds: int = 0,
        cost: int = 1,
    ) -> RateLimitResult:
        validate_consume_args(
            key, limit=limit, window_seconds=window_seconds, block_seconds=block_seconds, cost=cost
        )
        now = self._clock()
        block_key = f"{self._namespace}:block:{key}"

        block_ttl_ms = await self._client.pttl(block_key)
        if block_ttl_ms and block_ttl_ms > 0:
            return _blocked(limit=limit, retry_after=block_ttl_ms / 1000, now=now)

        window_start = int(now // window_seconds) * window_seconds
        reset_at = window_start + window_seconds
        counter_key = f"{self._namespace}:{key}:{window_start}"

        async with self._client.pipeline(transaction=True) as pipe:
            pipe.incrby(counter_key, cost)
            pipe.expire(counter_key, window_seconds + 1)
            count, _ = await pipe.execute()
        count = int(count)

        if count <= limit:
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=max(0, limit - count),
                reset_at=reset_at,
                retry_after_seconds=None,
            )

        if block_seconds > 0:
            # NX keeps the first block deadline when concurrent requests overflow together.
            if await self._client.set(block_key, "1", ex=block_seconds, nx=True):
                return _blocked(limit=limit, retry_after=block_seconds, now=now)
            block_ttl_ms = await self._client.pttl(block_key)
            if block_ttl_ms and block_ttl_ms > 0:
                return _blocked(limit=limit, retry_after=block_ttl_ms / 1000, now=now)
            return _blocked(limit=limit, retry_after=block_seconds, now=now)
        return _blocked(limit=limit, retry_after=reset_at - now, now=now)


def _blocked(*, limit: int, retry_after: float, now: float) -> RateLimitResult:
    wait = max(1, int(math.ceil(retry_after)))
    return RateLimitResult(
        allowed=False,
        limit=limit,
        remaining=0,
        reset_at=int(math.ceil(now + retry_after)),
        retry_after_seconds=wait,
    )


# --- Module Notes -----------------------------------------------------------
# Rejected requests still increment the window counter; the counter expires with the
# window so this never outlives it.
