"""
scheduling_api.ratelimit.memory

In-process fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Safe under asyncio concurrency: state changes happen without awaiting.
- Finished windows are swept at most once per `sweep_interval_seconds`, so one-off keys
  (a scanner's IPs, garbage bearer digests) do not accumulate.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from scheduling_api.ratelimit.base import AbstractRateLimiter, RateLimitResult, validate_consume_args


@dataclass
class _WindowState:
    window_end: int
    count: int
    blocked_until: float = 0.0

    def expired(self, now: float) -> bool:
        return now >= self.window_end and now >= self.blocked_until


class InMemoryRateLimiter(AbstractRateLimiter):
    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: float = 60.0,
    ) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._next_sweep_at = 0.0
        self._state_by_key: dict[str, _WindowState] = {}

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
        self._sweep(now)
        reset_at = int(now // window_seconds) * window_seconds + window_seconds

        state = self._state_by_key.get(key)
        if state is not None and now < state.blocked_until:
            return _blocked(limit=limit, now=now, until=state.blocked_until)

        if state is None or state.window_end != reset_at:
            state = _WindowState(window_end=reset_at, count=0)
            self._state_by_key[key] = state

        if state.count + cost <= limit:
            state.count += cost
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=max(0, limit - state.count),
                reset_at=reset_at,
                retry_after_seconds=None,
            )

        if block_seconds > 0:
            state.blocked_until = now + block_seconds
            return _blocked(limit=limit, now=now, until=state.blocked_until)
        return _blocked(limit=limit, now=now, until=reset_at)

    def _sweep(self, now: float) -> None:
        if now < self._next_sweep_at:
            return
        self._next_sweep_at = now + self._sweep_interval
        for key in [k for k, s in self._state_by_key.items() if s.expired(now)]:
            del self._state_by_key[key]


def _blocked(*, limit: int, now: float, until: float) -> RateLimitResult:
    return RateLimitResult(
        allowed=False,
        limit=limit,
        remaining=0,
        reset_at=int(math.ceil(until)),
        retry_after_seconds=max(1, int(math.ceil(until - now))),
    )
