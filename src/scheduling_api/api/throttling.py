"""
scheduling_api.api.throttling

Rate limiting dependency for the versioned API.

Responsibilities:
- Pick the tracker for a request (API key, bearer token, session, or client IP).
- Resolve the named limits that apply (per-key rows, cached; or the settings default).
- Consume every limit, expose X-RateLimit-* headers and raise 429 when exhausted.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.api.deps import cache_dep, db_read_session, rate_limiter_dep, settings_dep
from scheduling_api.auth.models import AuthMethod
from scheduling_api.auth.strategies import Credential, extract_credential
from scheduling_api.cache.base import AbstractCache
from scheduling_api.cache.keys import rate_limits_cache_key
from scheduling_api.db.repositories.api_keys import ApiKeyRepo
from scheduling_api.errors import RateLimitExceededError
from scheduling_api.observability.logging import get_logger
from scheduling_api.ratelimit.base import AbstractRateLimiter
from scheduling_api.settings import Settings

log = get_logger(__name__)

DEFAULT_LIMIT_NAME = "default"

_TRACKER_PREFIX = {
    AuthMethod.api_key: "api_key",
    AuthMethod.access_token: "bearer",
    AuthMethod.session: "session",
}


@dataclass(frozen=True, slots=True)
class NamedLimit:
    name: str
    limit: int
    window_seconds: int
    block_seconds: int


def tracker_for(request: Request, credential: Credential | None) -> str:
    if credential is not None:
        return f"{_TRACKER_PREFIX[credential.method]}:{credential.digest}"
    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def default_limits(settings: Settings) -> list[NamedLimit]:
    return [
        NamedLimit(
            name=DEFAULT_LIMIT_NAME,
            limit=settings.rate_limit_default_limit,
            window_seconds=settings.rate_limit_default_window_seconds,
            block_seconds=settings.rate_limit_default_block_seconds,
        )
    ]


async def resolve_limits(
    credential: Credential | None,
    *,
    settings: Settings,
    cache: AbstractCache,
    session: AsyncSession,
) -> list[NamedLimit]:
    if credential is None or credential.method is not AuthMethod.api_key:
        return default_limits(settings)

    key = rate_limits_cache_key(credential.digest)
    cached = await cache.get(key)
    if cached is None:
        rows = await ApiKeyRepo(session).rate_limits_for_hash(credential.digest)
        cached = [
            asdict(
                NamedLimit(
                    name=r.name,
                    limit=r.limit,
                    window_seconds=r.window_seconds,
                    block_seconds=r.block_seconds,
                )
            )
            for r in rows
        ]
        await cache.set(key, cached, ttl_seconds=settings.rate_limit_cache_ttl_seconds)

    # Keys without explicit limits (or unknown keys, which auth rejects next) get the default.
    return [NamedLimit(**item) for item in cached] or default_limits(settings)


def _header_suffix(name: str) -> str:
    return "-".join(part.capitalize() for part in name.replace("_", "-").split("-") if part)


async def enforce_rate_limit(
    request: Request,
    response: Response,
    settings: Settings = Depends(settings_dep),
    cache: AbstractCache = Depends(cache_dep),
    limiter: AbstractRateLimiter = Depends(rate_limiter_dep),
    session: AsyncSession = Depends(db_read_session),
) -> None:
    if not settings.rate_limit_enabled:
        return

    credential = extract_credential(request, settings)
    tracker = tracker_for(request, credential)
    limits = await resolve_limits(credential, settings=settings, cache=cache, session=session)

    headers: dict[str, str] = {}
    for named in limits:
        result = await limiter.consume(
            f"{tracker}:{named.name}",
            limit=named.limit,
            window_seconds=named.window_seconds,
            block_seconds=named.block_seconds,
        )
        suffix = _header_suffix(named.name)
        headers[f"X-RateLimit-Limit-{suffix}"] = str(result.limit)
        headers[f"X-RateLimit-Remaining-{suffix}"] = str(result.remaining)
        headers[f"X-RateLimit-Reset-{suffix}"] = str(result.reset_at)

        if not result.allowed:
            retry_after = result.retry_after_seconds or 1
            headers["Retry-After"] = str(retry_after)
            log.warning(
                "rate_limit.exceeded",
                tracker=tracker.split(":", 1)[0],
                limit_name=named.name,
                limit=result.limit,
                retry_after_s=retry_after,
            )
            raise RateLimitExceededError(
                f"Rate limit '{named.name}' exceeded. Try again in {retry_after} seconds.",
                headers=headers,
            )

    response.headers.update(headers)


# --- Module Notes -----------------------------------------------------------
# This dependency runs before authentication (router-level dependency), so invalid
# credentials are throttled too.
