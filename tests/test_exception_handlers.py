"""
tests.test_exception_handlers

Error envelope rendering for application, HTTP, validation and database failures.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI
from sqlalchemy.exc import DBAPIError, IntegrityError, NoResultFound

from scheduling_api.api.exception_handlers import register_exception_handlers
from scheduling_api.errors import ConflictError, RateLimitExceededError


def _app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/conflict")
    async def conflict() -> None:
        raise ConflictError("Already there", details={"field": "uid"})

    @app.get("/throttled")
    async def throttled() -> None:
        raise RateLimitExceededError("Slow down", headers={"Retry-After": "7"})

    @app.get("/integrity")
    async def integrity() -> None:
        raise IntegrityError("INSERT ...", {}, Exception("UNIQUE constraint failed"))

    @app.get("/db-down")
    async def db_down() -> None:
        raise DBAPIError("SELECT 1", {}, Exception("connection refused"))

    @app.get("/no-result")
    async def no_result() -> None:
        raise NoResultFound("No row was found")

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("secret internals")

    @app.get("/items/{item_id}")
    async def item(item_id: int) -> dict[str, int]:
        return {"id": item_id}

    return app


async def _get(path: str) -> httpx.Response:
    # Starlette re-raises unhandled errors after responding; keep the response instead.
    transport = httpx.ASGITransport(app=_app(), raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(path)


@pytest.mark.asyncio
async def test_app_error_envelope() -> None:
    r = await _get("/conflict")
    assert r.status_code == 409
    body = r.json()
    assert body["status"] == "error"
    assert body["path"] == "/conflict"
    assert body["timestamp"]
    assert body["error"] == {
        "code": "CONFLICT",
        "message": "Already there",
        "details": {"field": "uid"},
    }
    assert "requestId" not in body


@pytest.mark.asyncio
async def test_app_error_headers_are_forwarded() -> None:
    r = await _get("/throttled")
    assert r.status_code == 429
    assert r.headers["Retry-After"] == "7"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("path", "status_code", "code"),
    [
        ("/integrity", 409, "CONFLICT"),
        ("/db-down", 503, "SERVICE_UNAVAILABLE"),
        ("/no-result", 404, "NOT_FOUND"),
        ("/missing-route", 404, "NOT_FOUND"),
        ("/items/abc", 400, "BAD_REQUEST"),
    ],
)
async def test_framework_and_database_errors(path: str, status_code: int, code: str) -> None:
    r = await _get(path)
    assert r.status_code == status_code
    assert r.json()["error"]["code"] == code


@pytest.mark.asyncio
async def test_unhandled_errors_do_not_leak_details() -> None:
    r = await _get("/boom")
    assert r.status_code == 500
    error = r.json()["error"]
    assert error["code"] == "INTERNAL_SERVER_ERROR"
    assert "secret" not in error["message"]


@pytest.mark.asyncio
async def test_method_not_allowed_uses_status_name() -> None:
    transport = httpx.ASGITransport(app=_app())
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.post("/conflict")
    assert r.status_code == 405
    assert r.json()["error"]["code"] == "METHOD_NOT_ALLOWED"
