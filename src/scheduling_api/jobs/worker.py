"""
scheduling_api.jobs.worker

arq worker configuration.

Responsibilities:
- Register task functions and cron jobs.
- Create/dispose per-process resources (DB clients, outbound HTTP client) in the
  worker context.
"""

from __future__ import annotations

from typing import Any

import httpx
from arq import cron
from arq.connections import RedisSettings

from scheduling_api.db.session import create_database_clients
from scheduling_api.jobs.tasks import deliver_webhook, purge_expired_tokens
from scheduling_api.observability.logging import configure_logging, get_logger
from scheduling_api.settings import get_settings

log = get_logger(__name__)

settings = get_settings()


async def startup(ctx: dict[str, Any]) -> None:
    configure_logging(service_name=f"{settings.service_name}-worker", level=settings.log_level)
    ctx["settings"] = settings
    ctx["db"] = create_database_clients(settings)
    ctx["http"] = httpx.AsyncClient(timeout=settings.webhook_timeout_seconds)
    log.info("worker.startup", env=settings.env)


async def shutdown(ctx: dict[str, Any]) -> None:
    await ctx["http"].aclose()
    await ctx["db"].dispose()
    log.info("worker.shutdown")


class WorkerSettings:
    functions = [deliver_webhook, purge_expired_tokens]
    cron_jobs = [cron(purge_expired_tokens, hour={3}, minute={0})]

    on_startup = startup
    on_shutdown = shutdown

    redis_settings = RedisSettings.from_dsn(settings.redis_url or "redis://localhost:6379")

    # Tasks decide when to give up (see `jobs.tasks._retry_or_fail`); this is the backstop.
    max_tries = settings.job_max_tries
    job_timeout = 300
    keep_result = 3600


# --- Module Notes -----------------------------------------------------------
# Workers scale horizontally; Redis is the only coordination point between them.
