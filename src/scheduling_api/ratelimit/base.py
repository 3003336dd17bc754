"""
scheduling_api.ratelimit.base

Rate limiter interfaces.

The API depends on this abstraction (not a concrete store) so Redis and the
in-process limiter are interchangeable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    """
    Result of a consume operation.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max units per window.
        remaining: Units left in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the window (or block) ends.
        retry_after_seconds: Suggested wait in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


def validate_consume_args(
    key: str, *, limit: int, window_seconds: int, block_seconds: int, cost: int
) -> None:
    if not key:
        raise ValueError("key must be a non-empty string")
    if limit < 1:
        raise ValueError("limit must be >= 1")
    if window_seconds < 1:
        raise ValueError("window_seconds must be >= 1")
    if block_seconds < 0:
        raise ValueError("block_seconds must be >= 0")
    if cost < 1:
        raise ValueError("cost must be >= 1")


class AbstractRateLimiter(ABC):
    """
    Fixed-window limiter with an optional block period.

    When a consume pushes a key over `limit` and `block_seconds > 0`, the key is blocked
    for `block_seconds` from that moment; every consume during the block is rejected
    even after the window rolls over.
    """

    @abstractmethod
    async def consume(
        self,
        key: str,
        *,
        limit: int,
        window_seconds: int,
        block_seconds: int = 0,
        cost: int = 1,
    ) -> RateLimitResult:
        raise NotImplementedError


# --- Module Notes -----------------------------------------------------------
# Limits are passed per call because API keys carry their own named limits.
