"""
tests.test_api_keys_refresh

API key rotation: the old key stops working immediately (including cached guard
results) and named rate limits carry over to the new key.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import httpx
import pytest
from conftest import Seed, bearer

from scheduling_api.auth.keys import hash_api_key
from scheduling_api.db.repositories.api_keys import ApiKeyRepo


@pytest.mark.asyncio
async def test_refresh_rotates_the_calling_key(client: httpx.AsyncClient, seed: Seed) -> None:
    # Warm the guard cache for the old key first.
    assert (await client.get("/v2/me", headers=bearer(seed.api_key))).status_code == 200

    r = await client.post("/v2/api-keys/refresh", headers=bearer(seed.api_key))
    assert r.status_code == 200
    data = r.json()["data"]
    new_key = data["apiKey"]
    assert new_key.startswith("sched_")
    assert new_key != seed.api_key
    assert data["expiresAt"] is None

    assert (await client.get("/v2/me", headers=bearer(seed.api_key))).status_code == 401
    r = await client.get("/v2/me", headers=bearer(new_key))
    assert r.status_code == 200
    assert r.json()["data"]["id"] == seed.user_id


@pytest.mark.asyncio
async def test_refresh_carries_named_limits(app, client: httpx.AsyncClient, seed: Seed) -> None:
    r = await client.post("/v2/api-keys/refresh", headers=bearer(seed.limited_api_key))
    new_key = r.json()["data"]["apiKey"]

    prefix = app.state.settings.api_key_prefix
    async with app.state.db.read_sessionmaker() as session:
        repo = ApiKeyRepo(session)
        assert await repo.get_by_hash(hash_api_key(seed.limited_api_key, prefix)) is None
        limits = await repo.rate_limits_for_hash(hash_api_key(new_key, prefix))
    assert [(x.name, x.limit, x.window_seconds) for x in limits] == [
        ("long", 100, 3600),
        ("short", 2, 60),
    ]

    r = await client.get("/v2/me", headers=bearer(new_key))
    assert r.headers["X-RateLimit-Limit-Short"] == "2"


@pytest.mark.asyncio
async def test_refresh_with_new_validity(client: httpx.AsyncClient, seed: Seed) -> None:
    r = await client.post(
        "/v2/api-keys/refresh", json={"apiKeyDaysValid": 30}, headers=bearer(seed.api_key)
    )
    assert r.status_code == 200
    expires_at = datetime.fromisoformat(r.json()["data"]["expiresAt"])
    assert abs(expires_at - (datetime.now(tz=UTC) + timedelta(days=30))) < timedelta(minutes=1)

    new_key = r.json()["data"]["apiKey"]
    r = await client.post(
        "/v2/api-keys/refresh", json={"apiKeyNeverExpires": True}, headers=bearer(new_key)
    )
    assert r.status_code == 200
    assert r.json()["data"]["expiresAt"] is None


@pytest.mark.asyncio
async def test_refresh_rejects_invalid_validity(client: httpx.AsyncClient, seed: Seed) -> None:
    r = await client.post(
        "/v2/api-keys/refresh", json={"apiKeyDaysValid": 0}, headers=bearer(seed.api_key)
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_refresh_requires_api_key_auth(client: httpx.AsyncClient, seed: Seed) -> None:
    r = await client.post("/v2/dev/session-token", json={"userId": seed.user_id})
    token = r.json()["data"]["sessionToken"]

    r = await client.post("/v2/api-keys/refresh", headers={"Cookie": f"session-token={token}"})
    assert r.status_code == 403
