"""
scheduling_api.services.webhooks

Webhook fan-out and payload signing.

Responsibilities:
- Build the JSON envelope delivered to subscribers.
- Sign payloads (HMAC-SHA256) so subscribers can verify origin.
- Enqueue one delivery job per active subscriber of a trigger.
"""

from __future__ import annotations

import enum
import hashlib
import hmac
import json
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.db.models import utcnow
from scheduling_api.db.repositories.webhooks import WebhookRepo
from scheduling_api.jobs.queue import JobQueue
from scheduling_api.observability.logging import get_logger

log = get_logger(__name__)

SIGNATURE_HEADER = "x-sched-signature-256"
DELIVER_WEBHOOK = "deliver_webhook"


class WebhookTrigger(enum.StrEnum):
    booking_cancelled = "BOOKING_CANCELLED"


def encode_body(trigger: str, payload: dict[str, Any], *, created_at: str) -> bytes:
    envelope = {"triggerEvent": trigger, "createdAt": created_at, "payload": payload}
    # Compact, key-sorted JSON so signature verification is byte-stable.
    return json.dumps(envelope, separators=(",", ":"), sort_keys=True).encode()


def sign_body(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class WebhookDispatcher:
    def __init__(self, *, session: AsyncSession, jobs: JobQueue) -> None:
        self._webhooks = WebhookRepo(session)
        self._jobs = jobs

    async def dispatch(self, *, user_id: int, trigger: str, payload: dict[str, Any]) -> list[str]:
        hooks = await self._webhooks.active_for_trigger(user_id=user_id, trigger=trigger)
        created_at = utcnow().isoformat() + "Z"
        job_ids: list[str] = []
        for hook in hooks:
            job_ids.append(
                await self._jobs.enqueue(
                    DELIVER_WEBHOOK,
                    webhook_id=str(hook.id),
                    subscriber_url=hook.subscriber_url,
                    secret=hook.secret,
                    trigger=str(trigger),
                    payload=payload,
                    created_at=created_at,
                )
            )
        log.info("webhook.dispatched", trigger=trigger, user_id=user_id, subscribers=len(job_ids))
        return job_ids


# --- Module Notes -----------------------------------------------------------
# Subscriber URL and secret are captured at enqueue time so deliveries do not need a
# database round trip in the worker.
