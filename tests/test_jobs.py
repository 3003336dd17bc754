"""
tests.test_jobs

Background job tasks: webhook delivery (signing, retries, give-up) and token purge.
"""

from __future__ import annotations

import json
from datetime import timedelta

import httpx
import pytest
from arq.worker import Retry
from conftest import WEBHOOK_SECRET, Seed

from scheduling_api.db.models import utcnow
from scheduling_api.db.repositories.oauth import OAuthRepo
from scheduling_api.db.repositories.webhooks import WebhookRepo
from scheduling_api.jobs.queue import LocalJobQueue
from scheduling_api.jobs.tasks import (
    WebhookDeliveryError,
    backoff_seconds,
    deliver_webhook,
    purge_expired_tokens,
)
from scheduling_api.services.webhooks import (
    DELIVER_WEBHOOK,
    SIGNATURE_HEADER,
    WebhookDispatcher,
    WebhookTrigger,
    sign_body,
)

DELIVERY = {
    "webhook_id": "wh-1",
    "subscriber_url": "https://hooks.example.com/alice",
    "secret": WEBHOOK_SECRET,
    "trigger": "BOOKING_CANCELLED",
    "payload": {"uid": "bk-alice-1"},
    "created_at": "2030-01-01T00:00:00Z",
}


def _ctx(settings, handler, *, job_try: int = 1) -> dict:
    return {
        "settings": settings,
        "http": httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        "job_try": job_try,
    }


def test_backoff_doubles_up_to_cap() -> None:
    assert backoff_seconds(1, base=5, cap=600) == 5
    assert backoff_seconds(2, base=5, cap=600) == 10
    assert backoff_seconds(4, base=5, cap=600) == 40
    assert backoff_seconds(20, base=5, cap=600) == 600


@pytest.mark.asyncio
async def test_deliver_webhook_signs_the_body(settings) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    ctx = _ctx(settings, handler)
    assert await deliver_webhook(ctx, **DELIVERY) == 200
    await ctx["http"].aclose()

    request = seen[0]
    assert str(request.url) == DELIVERY["subscriber_url"]
    assert request.headers[SIGNATURE_HEADER] == sign_body(WEBHOOK_SECRET, request.content)
    body = json.loads(request.content)
    assert body == {
        "createdAt": "2030-01-01T00:00:00Z",
        "payload": {"uid": "bk-alice-1"},
        "triggerEvent": "BOOKING_CANCELLED",
    }


@pytest.mark.asyncio
async def test_unsigned_delivery_without_secret(settings) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    ctx = _ctx(settings, handler)
    assert await deliver_webhook(ctx, **{**DELIVERY, "secret": None}) == 204
    await ctx["http"].aclose()
    assert SIGNATURE_HEADER not in seen[0].headers


@pytest.mark.asyncio
async def test_transient_failure_is_retried_with_backoff(settings) -> None:
    ctx = _ctx(settings, lambda request: httpx.Response(503), job_try=2)
    with pytest.raises(Retry) as exc_info:
        await deliver_webhook(ctx, **DELIVERY)
    await ctx["http"].aclose()

    expected = backoff_seconds(
        2, base=settings.job_backoff_base_seconds, cap=settings.job_backoff_max_seconds
    )
    assert exc_info.value.defer_score == int(expected * 1000)


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [408, 429, 500, 501, 505, 507, 520])
async def test_every_server_error_is_retried(settings, status_code: int) -> None:
    ctx = _ctx(settings, lambda request: httpx.Response(status_code))
    with pytest.raises(Retry):
        await deliver_webhook(ctx, **DELIVERY)
    await ctx["http"].aclose()


@pytest.mark.asyncio
async def test_connection_errors_are_retried(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    ctx = _ctx(settings, handler)
    with pytest.raises(Retry):
        await deliver_webhook(ctx, **DELIVERY)
    await ctx["http"].aclose()


@pytest.mark.asyncio
async def test_gives_up_after_max_tries(settings) -> None:
    ctx = _ctx(settings, lambda request: httpx.Response(500), job_try=settings.job_max_tries)
    with pytest.raises(WebhookDeliveryError):
        await deliver_webhook(ctx, **DELIVERY)
    await ctx["http"].aclose()


@pytest.mark.asyncio
async def test_client_errors_are_not_retried(settings) -> None:
    ctx = _ctx(settings, lambda request: httpx.Response(410))
    assert await deliver_webhook(ctx, **DELIVERY) == 410
    await ctx["http"].aclose()


@pytest.mark.asyncio
async def test_purge_expired_tokens(app, seed: Seed) -> None:
    async with app.state.db.write_sessionmaker() as session:
        await OAuthRepo(session).add_access_token(
            token_hash="expired-access",
            client_id=seed.oauth_client_id,
            user_id=seed.user_id,
            expires_at=utcnow() - timedelta(hours=1),
        )
        await session.commit()

    purged = await purge_expired_tokens({"db": app.state.db})
    assert purged == 1

    async with app.state.db.read_sessionmaker() as session:
        repo = OAuthRepo(session)
        assert await repo.get_access_token("expired-access") is None
        assert await repo.get_refresh_token("unknown") is None


@pytest.mark.asyncio
async def test_dispatcher_targets_active_subscribers_of_the_trigger(app, seed: Seed) -> None:
    jobs = LocalJobQueue()
    async with app.state.db.write_sessionmaker() as session:
        await WebhookRepo(session).create(
            user_id=seed.user_id,
            subscriber_url="https://hooks.example.com/other-trigger",
            event_triggers=["BOOKING_CREATED"],
        )
        await session.commit()

        job_ids = await WebhookDispatcher(session=session, jobs=jobs).dispatch(
            user_id=seed.user_id,
            trigger=WebhookTrigger.booking_cancelled,
            payload={"uid": "bk-alice-1"},
        )

    assert job_ids == [jobs.jobs[0].job_id]
    assert jobs.jobs[0].function == DELIVER_WEBHOOK
    assert jobs.jobs[0].kwargs["secret"] == WEBHOOK_SECRET
