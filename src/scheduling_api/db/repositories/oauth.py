"""
scheduling_api.db.repositories.oauth

Repository for OAuth platform clients and their tokens.

Responsibilities:
- Create/fetch OAuth clients.
- Persist hashed access/refresh tokens and delete them on rotation or expiry.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.db.models import AccessToken, OAuthClient, RefreshToken


class OAuthRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_client(
        self, *, name: str, hashed_secret: str, redirect_uris: list[str] | None = None
    ) -> OAuthClient:
        client = OAuthClient(
            name=name, hashed_secret=hashed_secret, redirect_uris=redirect_uris or []
        )
        self._session.add(client)
        await self._session.flush()
        return client

    async def get_client(self, client_id: str) -> OAuthClient | None:
        return await self._session.get(OAuthClient, client_id)

    async def add_access_token(
        self, *, token_hash: str, client_id: str, user_id: int, expires_at: datetime
    ) -> AccessToken:
        token = AccessToken(
            token_hash=token_hash, client_id=client_id, user_id=user_id, expires_at=expires_at
        )
        self._session.add(token)
        await self._session.flush()
        return token

    async def add_refresh_token(
        self, *, token_hash: str, client_id: str, user_id: int, expires_at: datetime
    ) -> RefreshToken:
        token = RefreshToken(
            token_hash=token_hash, client_id=client_id, user_id=user_id, expires_at=expires_at
        )
        self._session.add(token)
        await self._session.flush()
        return token

    async def get_access_token(self, token_hash: str) -> AccessToken | None:
        stmt = select(AccessToken).where(AccessToken.token_hash == token_hash)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_refresh_token(self, token_hash: str) -> RefreshToken | None:
        stmt = select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def revoke_user_tokens(self, *, client_id: str, user_id: int) -> list[str]:
        """
        Delete every access/refresh token the client holds for the user.

        Returns the hashes of the deleted access tokens so callers can evict cached guard
        results for them.
        """

        stmt = select(AccessToken.token_hash).where(
            AccessToken.client_id == client_id, AccessToken.user_id == user_id
        )
        revoked = list((await self._session.execute(stmt)).scalars().all())
        await self._session.execute(
            delete(AccessToken).where(
                AccessToken.client_id == client_id, AccessToken.user_id == user_id
            )
        )
        await self._session.execute(
            delete(RefreshToken).where(
                RefreshToken.client_id == client_id, RefreshToken.user_id == user_id
            )
        )
        return revoked

    async def purge_expired(self, *, now: datetime) -> int:
        access = await self._session.execute(
            delete(AccessToken).where(AccessToken.expires_at < now)
        )
        refresh = await self._session.execute(
            delete(RefreshToken).where(RefreshToken.expires_at < now)
        )
        return (access.rowcount or 0) + (refresh.rowcount or 0)


# --- Module Notes -----------------------------------------------------------
# Deleting a token row is the revocation mechanism; the auth guard checks presence.
