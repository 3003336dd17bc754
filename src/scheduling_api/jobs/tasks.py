"""
scheduling_api.jobs.tasks

arq task functions.

Responsibilities:
- Deliver signed webhook payloads, retrying transient failures with exponential backoff.
- Purge expired OAuth tokens (cron).
"""

from __future__ import annotations

from typing import Any

import httpx
from arq.worker import Retry

from scheduling_api.db.models import utcnow
from scheduling_api.db.repositories.oauth import OAuthRepo
from scheduling_api.observability.logging import get_logger
from scheduling_api.services.webhooks import SIGNATURE_HEADER, encode_body, sign_body
from scheduling_api.settings import Settings

log = get_logger(__name__)

# Besides these, every 5xx is retried.
RETRYABLE_STATUS = frozenset({408, 425, 429})


class WebhookDeliveryError(Exception):
    pass


def backoff_seconds(job_try: int, *, base: float, cap: float) -> float:
    # job_try is 1-based: 1st retry waits `base`, then doubles up to `cap`.
    return min(cap, base * (2 ** max(0, job_try - 1)))


def _retry_or_fail(ctx: dict[str, Any], reason: str) -> Retry:
    settings: Settings = ctx["settings"]
    job_try = int(ctx.get("job_try", 1))
    if job_try >= settings.job_max_tries:
        raise WebhookDeliveryError(f"giving up after {job_try} attempts: {reason}")
    defer = backoff_seconds(
        job_try, base=settings.job_backoff_base_seconds, cap=settings.job_backoff_max_seconds
    )
    log.warning("webhook.retry", job_try=job_try, defer_s=defer, reason=reason)
    return Retry(defer=defer)


async def deliver_webhook(
    ctx: dict[str, Any],
    *,
    webhook_id: str,
    subscriber_url: str,
    secret: str | None,
    trigger: str,
    payload: dict[str, Any],
    created_at: str,
) -> int:
    http: httpx.AsyncClient = ctx["http"]
    body = encode_body(trigger, payload, created_at=created_at)
    headers = {"content-type": "application/json"}
    if secret:
        headers[SIGNATURE_HEADER] = sign_body(secret, body)

    try:
        response = await http.post(subscriber_url, content=body, headers=headers)
    except httpx.HTTPError as e:
        raise _retry_or_fail(ctx, f"{type(e).__name__}: {e}") from e

    if response.status_code >= 500 or response.status_code in RETRYABLE_STATUS:
        raise _retry_or_fail(ctx, f"status {response.status_code}")

    if response.is_success:
        log.info("webhook.delivered", webhook_id=webhook_id, status_code=response.status_code)
    else:
        # Other client errors are permanent; retrying cannot change the outcome.
        log.warning("webhook.rejected", webhook_id=webhook_id, status_code=response.status_code)
    return response.status_code


async def purge_expired_tokens(ctx: dict[str, Any]) -> int:
    async with ctx["db"].write_sessionmaker() as session:
        purged = await OAuthRepo(session).purge_expired(now=utcnow())
        await session.commit()
    log.info("oauth.tokens_purged", count=purged)
    return purged


# --- Module Notes -----------------------------------------------------------
# `ctx` is populated by `jobs.worker.startup` with settings, DB clients and an httpx client.
