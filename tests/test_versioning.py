"""
tests.test_versioning

Header-based API version resolution and dated controller routing.
"""

from __future__ import annotations

import httpx
import pytest
from conftest import Seed, bearer

from scheduling_api.api.versioning import (
    DEFAULT_API_VERSION,
    VERSION_2024_08_13,
    UnsupportedApiVersion,
    resolve_api_version,
    versioned_route,
)


def test_resolve_api_version_defaults_when_missing() -> None:
    assert resolve_api_version(None) == DEFAULT_API_VERSION
    assert resolve_api_version("  ") == DEFAULT_API_VERSION
    assert resolve_api_version(" 2024-08-13 ") == VERSION_2024_08_13


def test_resolve_api_version_rejects_unknown() -> None:
    with pytest.raises(UnsupportedApiVersion):
        resolve_api_version("2023-01-01")


def test_versioned_route_requires_known_versions() -> None:
    with pytest.raises(ValueError):
        versioned_route()
    with pytest.raises(ValueError):
        versioned_route("1999-12-31")

    route_cls = versioned_route(VERSION_2024_08_13)
    assert route_cls.versions == frozenset({VERSION_2024_08_13})


@pytest.mark.asyncio
async def test_unknown_version_header_is_rejected(client: httpx.AsyncClient, seed: Seed) -> None:
    r = await client.get(
        "/v2/bookings", headers={**bearer(seed.api_key), "api-version": "2020-01-01"}
    )
    assert r.status_code == 400
    body = r.json()
    assert body["status"] == "error"
    assert body["error"]["code"] == "BAD_REQUEST"
    assert "2024-04-15" in body["error"]["details"]["supportedVersions"]


@pytest.mark.asyncio
async def test_same_path_is_served_by_the_requested_version(
    client: httpx.AsyncClient, seed: Seed
) -> None:
    old = await client.get("/v2/bookings", headers=bearer(seed.api_key))
    assert old.status_code == 200
    assert "startTime" in old.json()["data"][0]
    assert "pagination" not in old.json()

    new = await client.get(
        "/v2/bookings", headers={**bearer(seed.api_key), "api-version": "2024-08-13"}
    )
    assert new.status_code == 200
    assert "start" in new.json()["data"][0]
    assert "startTime" not in new.json()["data"][0]
    assert "pagination" in new.json()


@pytest.mark.asyncio
async def test_version_neutral_routes_serve_every_version(
    client: httpx.AsyncClient, seed: Seed
) -> None:
    for version in ("2024-04-15", "2024-08-13"):
        r = await client.get("/v2/me", headers={**bearer(seed.api_key), "api-version": version})
        assert r.status_code == 200
        assert r.json()["data"]["email"] == "alice@example.com"


@pytest.mark.asyncio
async def test_openapi_documents_the_latest_booking_contract(client: httpx.AsyncClient) -> None:
    r = await client.get("/openapi.json")
    assert r.status_code == 200
    list_op = r.json()["paths"]["/v2/bookings"]["get"]
    # Dated controllers share paths; the schema shows the most recently registered one.
    assert "2024_08_13" in list_op["operationId"]
