"""
scheduling_api.cache.base

Cache interface.

Responsibilities:
- Define the async get/set/delete contract with JSON-serializable values.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AbstractCache(ABC):
    """
    Async TTL cache. Values must be JSON-serializable; a miss returns None.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: Any, *, ttl_seconds: int) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        raise NotImplementedError


# --- Module Notes -----------------------------------------------------------
# Backends must never raise on a miss; callers treat None as "compute and set".
