"""
tests.test_auth

Authentication strategies, the caching guard and auth-method restrictions.
"""

from __future__ import annotations

from datetime import timedelta

import httpx
import pytest
from conftest import Seed, bearer
from sqlalchemy import delete, update

from scheduling_api.auth.guard import AuthGuard
from scheduling_api.auth.jwt import access_token_config, issue_token
from scheduling_api.auth.keys import hash_api_key, hash_secret
from scheduling_api.auth.models import AuthMethod, Principal
from scheduling_api.auth.strategies import AuthResult
from scheduling_api.cache.keys import principal_cache_key
from scheduling_api.cache.memory import InMemoryCache
from scheduling_api.db.models import AccessToken, utcnow
from scheduling_api.db.repositories.oauth import OAuthRepo
from scheduling_api.services.api_keys import ApiKeyService


@pytest.mark.asyncio
async def test_missing_credentials_are_rejected(client: httpx.AsyncClient, seed: Seed) -> None:
    r = await client.get("/v2/me")
    assert r.status_code == 401
    body = r.json()
    assert body["status"] == "error"
    assert body["path"] == "/v2/me"
    assert body["error"]["code"] == "UNAUTHORIZED"
    assert body["requestId"] == r.headers["x-request-id"]


@pytest.mark.asyncio
async def test_api_key_authentication(client: httpx.AsyncClient, seed: Seed) -> None:
    r = await client.get("/v2/me", headers=bearer(seed.api_key))
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["id"] == seed.user_id
    assert data["authMethod"] == "api_key"
    assert data["timeZone"] == "UTC"

    r = await client.get("/v2/me", headers=bearer("sched_" + "0" * 32))
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_expired_api_key_is_rejected(app, client: httpx.AsyncClient, seed: Seed) -> None:
    async with app.state.db.write_sessionmaker() as session:
        svc = ApiKeyService(session=session, settings=app.state.settings, cache=app.state.cache)
        issued = await svc.create(user_id=seed.user_id, expires_at=utcnow() - timedelta(days=1))

    r = await client.get("/v2/me", headers=bearer(issued.plaintext))
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "API key expired"


@pytest.mark.asyncio
async def test_access_token_authentication(client: httpx.AsyncClient, seed: Seed) -> None:
    r = await client.get("/v2/me", headers=bearer(seed.access_token))
    assert r.status_code == 200
    assert r.json()["data"]["authMethod"] == "access_token"

    r = await client.get("/v2/me", headers=bearer(seed.access_token + "tampered"))
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_session_cookie_authentication(client: httpx.AsyncClient, seed: Seed) -> None:
    r = await client.post("/v2/dev/session-token", json={"userId": seed.user_id})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["cookieName"] == "session-token"
    assert "session-token=" in r.headers["set-cookie"]

    r = await client.get("/v2/me", headers={"Cookie": f"session-token={data['sessionToken']}"})
    assert r.status_code == 200
    assert r.json()["data"]["authMethod"] == "session"


@pytest.mark.asyncio
async def test_session_token_cannot_be_used_as_access_token(
    client: httpx.AsyncClient, seed: Seed
) -> None:
    r = await client.post("/v2/dev/session-token", json={"userId": seed.user_id})
    session_token = r.json()["data"]["sessionToken"]

    r = await client.get("/v2/me", headers=bearer(session_token))
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_dev_session_for_unknown_user(client: httpx.AsyncClient, seed: Seed) -> None:
    r = await client.post("/v2/dev/session-token", json={"userId": 9999})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_bearer_wins_over_session_cookie(client: httpx.AsyncClient, seed: Seed) -> None:
    r = await client.post("/v2/dev/session-token", json={"userId": seed.other_user_id})
    bob_session = r.json()["data"]["sessionToken"]

    r = await client.get(
        "/v2/me",
        headers={**bearer(seed.api_key), "Cookie": f"session-token={bob_session}"},
    )
    assert r.status_code == 200
    assert r.json()["data"]["id"] == seed.user_id


@pytest.mark.asyncio
async def test_successful_auth_is_cached(app, client: httpx.AsyncClient, seed: Seed) -> None:
    prefix = app.state.settings.api_key_prefix
    key = principal_cache_key(AuthMethod.api_key, hash_api_key(seed.api_key, prefix))
    assert await app.state.cache.get(key) is None

    r = await client.get("/v2/me", headers=bearer(seed.api_key))
    assert r.status_code == 200

    cached = await app.state.cache.get(key)
    assert cached is not None
    assert Principal.from_cache(cached).user_id == seed.user_id


@pytest.mark.asyncio
async def test_failed_auth_is_not_cached(app, client: httpx.AsyncClient, seed: Seed) -> None:
    bogus = "not-a-jwt"
    r = await client.get("/v2/me", headers=bearer(bogus))
    assert r.status_code == 401

    key = principal_cache_key(AuthMethod.access_token, hash_secret(bogus))
    assert await app.state.cache.get(key) is None


@pytest.mark.asyncio
async def test_api_key_only_endpoint_rejects_other_methods(
    client: httpx.AsyncClient, seed: Seed
) -> None:
    r = await client.post("/v2/api-keys/refresh", headers=bearer(seed.access_token))
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "FORBIDDEN"


def _principal() -> Principal:
    return Principal(user_id=1, email="a@example.com", role="USER", auth_method=AuthMethod.session)


def test_guard_cache_ttl_never_outlives_the_credential(settings) -> None:
    guard = AuthGuard(settings=settings, cache=InMemoryCache(), session=None)  # type: ignore[arg-type]

    no_expiry = AuthResult(principal=_principal(), expires_at=None)
    assert guard._cache_ttl(no_expiry) == settings.auth_cache_ttl_seconds

    short = AuthResult(principal=_principal(), expires_at=utcnow() + timedelta(seconds=10))
    assert 0 < guard._cache_ttl(short) <= 10

    expired = AuthResult(principal=_principal(), expires_at=utcnow() - timedelta(seconds=5))
    assert guard._cache_ttl(expired) == 0


async def _store_access_token(
    app, token: str, *, client_id: str, user_id: int, expires_at
) -> None:
    async with app.state.db.write_sessionmaker() as session:
        await OAuthRepo(session).add_access_token(
            token_hash=hash_secret(token),
            client_id=client_id,
            user_id=user_id,
            expires_at=expires_at,
        )
        await session.commit()


@pytest.mark.asyncio
async def test_access_token_with_expired_row_is_rejected(
    app, client: httpx.AsyncClient, seed: Seed
) -> None:
    async with app.state.db.write_sessionmaker() as session:
        await session.execute(
            update(AccessToken)
            .where(AccessToken.token_hash == hash_secret(seed.access_token))
            .values(expires_at=utcnow() - timedelta(minutes=1))
        )
        await session.commit()

    r = await client.get("/v2/me", headers=bearer(seed.access_token))
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "Access token expired"


@pytest.mark.asyncio
async def test_access_token_with_deleted_row_is_rejected(
    app, client: httpx.AsyncClient, seed: Seed
) -> None:
    async with app.state.db.write_sessionmaker() as session:
        await session.execute(
            delete(AccessToken).where(AccessToken.token_hash == hash_secret(seed.access_token))
        )
        await session.commit()

    r = await client.get("/v2/me", headers=bearer(seed.access_token))
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "Access token revoked or unknown"


@pytest.mark.asyncio
@pytest.mark.parametrize("mismatch", ["client_id", "sub"])
async def test_access_token_must_match_its_stored_grant(
    app, client: httpx.AsyncClient, seed: Seed, mismatch: str
) -> None:
    cfg = access_token_config(app.state.settings)
    subject = str(seed.other_user_id if mismatch == "sub" else seed.user_id)
    client_id = "someone-else" if mismatch == "client_id" else seed.oauth_client_id
    token = issue_token(cfg=cfg, subject=subject, claims={"client_id": client_id})

    # The row records the seeded grant, not what the JWT claims.
    await _store_access_token(
        app,
        token,
        client_id=seed.oauth_client_id,
        user_id=seed.user_id,
        expires_at=utcnow() + timedelta(hours=1),
    )

    r = await client.get("/v2/me", headers=bearer(token))
    assert r.status_code == 401
    assert r.json()["error"]["message"] == "Access token does not match its grant"
