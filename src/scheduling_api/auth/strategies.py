"""
scheduling_api.auth.strategies

Authentication strategies (API key, OAuth2 access token, session cookie).

Responsibilities:
- Extract the single credential a request carries.
- Validate each credential type against its store and build a `Principal`.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection

from scheduling_api.auth.jwt import (
    JwtValidationError,
    access_token_config,
    decode_and_validate,
    session_config,
)
from scheduling_api.auth.keys import hash_api_key, hash_secret, is_api_key
from scheduling_api.auth.models import AuthMethod, Principal
from scheduling_api.db.models import User, utcnow
from scheduling_api.db.repositories.api_keys import ApiKeyRepo
from scheduling_api.db.repositories.oauth import OAuthRepo
from scheduling_api.db.repositories.users import UserRepo
from scheduling_api.errors import AuthenticationError
from scheduling_api.settings import Settings


@dataclass(frozen=True, slots=True)
class Credential:
    method: AuthMethod
    value: str
    # Hash used for DB lookups and cache keys; never the raw secret.
    digest: str


@dataclass(frozen=True, slots=True)
class AuthResult:
    principal: Principal
    # Naive UTC expiry of the credential, when it has one.
    expires_at: datetime | None


def extract_credential(conn: HTTPConnection, settings: Settings) -> Credential | None:
    """
    Pick the credential to authenticate with.

    A bearer token wins over a session cookie. Bearer values carrying the API-key prefix
    are API keys; any other bearer value is treated as an OAuth2 access token.
    """

    authorization = conn.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() == "bearer" and token:
        if is_api_key(token, settings.api_key_prefix):
            return Credential(
                method=AuthMethod.api_key,
                value=token,
                digest=hash_api_key(token, settings.api_key_prefix),
            )
        return Credential(method=AuthMethod.access_token, value=token, digest=hash_secret(token))

    session_token = conn.cookies.get(settings.session_cookie_name)
    if session_token:
        return Credential(
            method=AuthMethod.session, value=session_token, digest=hash_secret(session_token)
        )
    return None


def _principal(user: User, method: AuthMethod, **extra) -> Principal:
    return Principal(
        user_id=user.id,
        email=user.email,
        role=user.role.value,
        auth_method=method,
        **extra,
    )


async def authenticate_api_key(
    credential: Credential, *, session: AsyncSession, settings: Settings
) -> AuthResult:
    key = await ApiKeyRepo(session).get_by_hash(credential.digest)
    if key is None:
        raise AuthenticationError("Invalid API key")
    if key.expires_at is not None and key.expires_at <= utcnow():
        raise AuthenticationError("API key expired")

    user = await UserRepo(session).get(key.user_id)
    if user is None:
        raise AuthenticationError("API key owner not found")
    return AuthResult(
        principal=_principal(user, AuthMethod.api_key, api_key_id=key.id),
        expires_at=key.expires_at,
    )


async def authenticate_access_token(
    credential: Credential, *, session: AsyncSession, settings: Settings
) -> AuthResult:
    try:
        payload = decode_and_validate(cfg=access_token_config(settings), token=credential.value)
    except JwtValidationError as e:
        raise AuthenticationError(f"Invalid access token: {e}") from e

    # The JWT is only half the check: the token row must still exist (revocation = delete).
    stored = await OAuthRepo(session).get_access_token(credential.digest)
    if stored is None:
        raise AuthenticationError("Access token revoked or unknown")
    if stored.expires_at <= utcnow():
        raise AuthenticationError("Access token expired")
    if str(stored.user_id) != str(payload.get("sub")) or stored.client_id != payload.get(
        "client_id"
    ):
        raise AuthenticationError("Access token does not match its grant")

    user = await UserRepo(session).get(stored.user_id)
    if user is None:
        raise AuthenticationError("Access token owner not found")
    return AuthResult(
        principal=_principal(user, AuthMethod.access_token, oauth_client_id=stored.client_id),
        expires_at=stored.expires_at,
    )


async def authenticate_session(
    credential: Credential, *, session: AsyncSession, settings: Settings
) -> AuthResult:
    try:
        payload = decode_and_validate(cfg=session_config(settings), token=credential.value)
    except JwtValidationError as e:
        raise AuthenticationError(f"Invalid session: {e}") from e

    try:
        user_id = int(payload["sub"])
    except (KeyError, ValueError) as e:
        raise AuthenticationError("Invalid session subject") from e

    user = await UserRepo(session).get(user_id)
    if user is None:
        raise AuthenticationError("Session user not found")
    expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=UTC).replace(tzinfo=None)
    return AuthResult(principal=_principal(user, AuthMethod.session), expires_at=expires_at)


Strategy = Callable[..., Awaitable[AuthResult]]

STRATEGIES: dict[AuthMethod, Strategy] = {
    AuthMethod.api_key: authenticate_api_key,
    AuthMethod.access_token: authenticate_access_token,
    AuthMethod.session: authenticate_session,
}


# --- Module Notes -----------------------------------------------------------
# Strategies raise `AuthenticationError` (401) for every rejection; the guard caches
# only successful results.
