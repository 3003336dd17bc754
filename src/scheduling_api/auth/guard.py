"""
scheduling_api.auth.guard

Authentication guard with result caching.

Responsibilities:
- Dispatch a request credential to the matching strategy.
- Cache successful results keyed by credential hash, bounded by credential expiry.
"""

from __future__ import annotations

import math

from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.auth.models import Principal
from scheduling_api.auth.strategies import STRATEGIES, AuthResult, Credential
from scheduling_api.cache.base import AbstractCache
from scheduling_api.cache.keys import principal_cache_key
from scheduling_api.db.models import utcnow
from scheduling_api.errors import AuthenticationError
from scheduling_api.observability.logging import get_logger
from scheduling_api.settings import Settings

log = get_logger(__name__)


class AuthGuard:
    def __init__(self, *, settings: Settings, cache: AbstractCache, session: AsyncSession) -> None:
        self._settings = settings
        self._cache = cache
        self._session = session

    async def authenticate(self, credential: Credential | None) -> Principal:
        if credential is None:
            raise AuthenticationError("No authentication method provided")

        key = principal_cache_key(credential.method, credential.digest)
        cached = await self._cache.get(key)
        if cached is not None:
            log.debug("auth.cache_hit", method=credential.method.value)
            return Principal.from_cache(cached)

        strategy = STRATEGIES[credential.method]
        try:
            result = await strategy(credential, session=self._session, settings=self._settings)
        except AuthenticationError as e:
            log.warning(
                "auth.rejected",
                method=credential.method.value,
                credential=credential.digest[:16],
                reason=e.message,
            )
            raise

        ttl = self._cache_ttl(result)
        await self._cache.set(key, result.principal.to_cache(), ttl_seconds=ttl)
        log.info(
            "auth.authenticated",
            method=credential.method.value,
            user_id=result.principal.user_id,
            cache_ttl_s=ttl,
        )
        return result.principal

    def _cache_ttl(self, result: AuthResult) -> int:
        ttl = self._settings.auth_cache_ttl_seconds
        if result.expires_at is None:
            return ttl
        remaining = (result.expires_at - utcnow()).total_seconds()
        # A cached principal must never outlive the credential it was derived from.
        return max(0, min(ttl, math.floor(remaining)))


# --- Module Notes -----------------------------------------------------------
# Revocation (API key refresh, token rotation) evicts entries via `principal_cache_key`;
# other changes (e.g. a role update) become visible after `auth_cache_ttl_seconds`.
