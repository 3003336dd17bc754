"""
scheduling_api.services.api_keys

API key lifecycle service.

Responsibilities:
- Create API keys (optionally with named rate limits); plaintext is returned once.
- Refresh (rotate) the calling key, carrying its limits over and evicting cached
  guard/limit entries of the old key.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.auth.keys import generate_api_key, hash_api_key
from scheduling_api.auth.models import AuthMethod, Principal
from scheduling_api.cache.base import AbstractCache
from scheduling_api.cache.keys import principal_cache_key, rate_limits_cache_key
from scheduling_api.db.models import ApiKey
from scheduling_api.db.repositories.api_keys import ApiKeyRepo
from scheduling_api.errors import ForbiddenError, NotFoundError
from scheduling_api.observability.logging import get_logger
from scheduling_api.settings import Settings

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class IssuedApiKey:
    api_key: ApiKey
    plaintext: str


class ApiKeyService:
    def __init__(self, *, session: AsyncSession, settings: Settings, cache: AbstractCache) -> None:
        self._session = session
        self._settings = settings
        self._cache = cache
        self._keys = ApiKeyRepo(session)

    async def create(
        self,
        *,
        user_id: int,
        note: str | None = None,
        expires_at: datetime | None = None,
        rate_limits: list[tuple[str, int, int, int]] | None = None,
    ) -> IssuedApiKey:
        plaintext = generate_api_key(self._settings.api_key_prefix)
        key = await self._keys.create(
            user_id=user_id,
            hashed_key=hash_api_key(plaintext, self._settings.api_key_prefix),
            note=note,
            expires_at=expires_at,
            rate_limits=rate_limits or [],
        )
        await self._session.commit()
        log.info("api_key.created", user_id=user_id, api_key_id=str(key.id))
        return IssuedApiKey(api_key=key, plaintext=plaintext)

    async def refresh(
        self,
        *,
        principal: Principal,
        expires_at: datetime | None = None,
        keep_expiry: bool = True,
    ) -> IssuedApiKey:
        """
        Replace the calling key. With `keep_expiry` the new key inherits the old expiry;
        otherwise `expires_at` applies (None = never expires).
        """

        if principal.auth_method is not AuthMethod.api_key or principal.api_key_id is None:
            raise ForbiddenError("API keys can only be refreshed with an API key")

        old = await self._keys.get(principal.api_key_id)
        if old is None or old.user_id != principal.user_id:
            raise NotFoundError("API key not found")

        limits = [(r.name, r.limit, r.window_seconds, r.block_seconds) for r in old.rate_limits]
        old_hash = old.hashed_key
        old_id: uuid.UUID = old.id
        note = old.note
        if keep_expiry:
            expires_at = old.expires_at
        await self._keys.delete(old)

        plaintext = generate_api_key(self._settings.api_key_prefix)
        new = await self._keys.create(
            user_id=principal.user_id,
            hashed_key=hash_api_key(plaintext, self._settings.api_key_prefix),
            note=note,
            expires_at=expires_at,
            rate_limits=limits,
        )
        await self._session.commit()

        # The old key must stop authenticating now, not when its cache entry expires.
        await self._cache.delete(
            principal_cache_key(AuthMethod.api_key, old_hash),
            rate_limits_cache_key(old_hash),
        )
        log.info(
            "api_key.refreshed",
            user_id=principal.user_id,
            old_api_key_id=str(old_id),
            api_key_id=str(new.id),
        )
        return IssuedApiKey(api_key=new, plaintext=plaintext)


# --- Module Notes -----------------------------------------------------------
# Only hashes are stored; a lost plaintext key can be replaced, never recovered.
