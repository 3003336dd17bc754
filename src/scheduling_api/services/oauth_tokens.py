"""
scheduling_api.services.oauth_tokens

OAuth2 token service for platform clients.

Responsibilities:
- Issue access (JWT) + refresh (opaque) token pairs for a client acting for a user.
- Rotate a pair given a valid refresh token and the client secret.
- Register OAuth clients (secret returned once).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.auth.jwt import access_token_config, issue_token
from scheduling_api.auth.keys import (
    generate_client_secret,
    generate_refresh_token,
    hash_secret,
    secrets_match,
)
from scheduling_api.auth.models import AuthMethod
from scheduling_api.cache.base import AbstractCache
from scheduling_api.cache.keys import principal_cache_key
from scheduling_api.db.models import OAuthClient, utcnow
from scheduling_api.db.repositories.oauth import OAuthRepo
from scheduling_api.errors import AuthenticationError, NotFoundError
from scheduling_api.observability.logging import get_logger
from scheduling_api.settings import Settings

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_token_expires_at: datetime


@dataclass(frozen=True, slots=True)
class RegisteredClient:
    client: OAuthClient
    secret: str


class OAuthTokenService:
    def __init__(self, *, session: AsyncSession, settings: Settings, cache: AbstractCache) -> None:
        self._session = session
        self._settings = settings
        self._cache = cache
        self._oauth = OAuthRepo(session)

    async def register_client(
        self, *, name: str, redirect_uris: list[str] | None = None
    ) -> RegisteredClient:
        secret = generate_client_secret()
        client = await self._oauth.create_client(
            name=name, hashed_secret=hash_secret(secret), redirect_uris=redirect_uris
        )
        await self._session.commit()
        return RegisteredClient(client=client, secret=secret)

    async def issue(self, *, client_id: str, user_id: int) -> TokenPair:
        pair = await self._mint(client_id=client_id, user_id=user_id)
        await self._session.commit()
        log.info("oauth.tokens_issued", client_id=client_id, user_id=user_id)
        return pair

    async def refresh(self, *, client_id: str, client_secret: str, refresh_token: str) -> TokenPair:
        client = await self._oauth.get_client(client_id)
        if client is None:
            raise NotFoundError("OAuth client not found")
        if not secrets_match(client_secret, client.hashed_secret):
            raise AuthenticationError("Invalid OAuth client secret")

        stored = await self._oauth.get_refresh_token(hash_secret(refresh_token))
        if stored is None or stored.client_id != client_id:
            raise AuthenticationError("Invalid refresh token")
        if stored.expires_at <= utcnow():
            raise AuthenticationError("Refresh token expired")

        user_id = stored.user_id
        revoked = await self._oauth.revoke_user_tokens(client_id=client_id, user_id=user_id)
        pair = await self._mint(client_id=client_id, user_id=user_id)
        await self._session.commit()

        if revoked:
            await self._cache.delete(
                *(principal_cache_key(AuthMethod.access_token, h) for h in revoked)
            )
        log.info("oauth.tokens_refreshed", client_id=client_id, user_id=user_id)
        return pair

    async def _mint(self, *, client_id: str, user_id: int) -> TokenPair:
        now = utcnow()
        access_ttl = timedelta(minutes=self._settings.access_token_ttl_minutes)
        access_token = issue_token(
            cfg=access_token_config(self._settings),
            subject=str(user_id),
            claims={"client_id": client_id, "type": "access_token"},
            ttl=access_ttl,
        )
        refresh_token = generate_refresh_token()

        access_expires_at = now + access_ttl
        await self._oauth.add_access_token(
            token_hash=hash_secret(access_token),
            client_id=client_id,
            user_id=user_id,
            expires_at=access_expires_at,
        )
        await self._oauth.add_refresh_token(
            token_hash=hash_secret(refresh_token),
            client_id=client_id,
            user_id=user_id,
            expires_at=now + timedelta(days=self._settings.refresh_token_ttl_days),
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            access_token_expires_at=access_expires_at,
        )


# --- Module Notes -----------------------------------------------------------
# Rotation revokes every token the client holds for the user, so a leaked refresh
# token stops working as soon as the legitimate client refreshes.
