"""
scheduling_api.cache.keys

Cache key builders shared by writers and invalidators.

Responsibilities:
- Keep the `auth:*` and `ratelimits:*` key formats in one place so services evicting
  entries always match what the guard and the throttler wrote.
"""

from __future__ import annotations

from scheduling_api.auth.models import AuthMethod


def principal_cache_key(method: AuthMethod, digest: str) -> str:
    return f"auth:{method.value}:{digest}"


def rate_limits_cache_key(hashed_key: str) -> str:
    return f"ratelimits:{hashed_key}"
