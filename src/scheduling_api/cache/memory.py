"""
scheduling_api.cache.memory

In-process TTL cache.

Notes:
- Per-process only: each API worker holds its own entries.
- Values are stored JSON-encoded so callers never share mutable objects with the cache.
- Expired entries are dropped on read and swept on write, at most once per
  `sweep_interval_seconds`.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Callable
from typing import Any

from scheduling_api.cache.base import AbstractCache


class InMemoryCache(AbstractCache):
    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval_seconds: float = 60.0,
    ) -> None:
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._next_sweep_at = 0.0
        self._lock = asyncio.Lock()
        self._entries: dict[str, tuple[float, str]] = {}

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, raw = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return json.loads(raw)

    async def set(self, key: str, value: Any, *, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        raw = json.dumps(value)
        async with self._lock:
            now = self._clock()
            self._sweep(now)
            self._entries[key] = (now + ttl_seconds, raw)

    async def delete(self, *keys: str) -> int:
        async with self._lock:
            return sum(1 for k in keys if self._entries.pop(k, None) is not None)

    async def ping(self) -> bool:
        return True

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        if now < self._next_sweep_at:
            return
        self._next_sweep_at = now + self._sweep_interval
        for key in [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]:
            del self._entries[key]
