"""
scheduling_api.jobs.queue

Job queue boundary used by services.

Responsibilities:
- Enqueue named task functions with keyword arguments.
- Provide an arq-backed queue and an in-process queue that records jobs when Redis is
  not configured (dev/test).
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from arq.connections import ArqRedis, RedisSettings, create_pool

from scheduling_api.observability.logging import get_logger
from scheduling_api.settings import Settings

log = get_logger(__name__)


class JobQueue(ABC):
    @abstractmethod
    async def enqueue(self, function: str, **kwargs: Any) -> str:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class ArqJobQueue(JobQueue):
    def __init__(self, pool: ArqRedis) -> None:
        self._pool = pool

    @classmethod
    async def connect(cls, settings: Settings) -> ArqJobQueue:
        if not settings.redis_url:
            raise ValueError("redis_url is not configured")
        pool = await create_pool(RedisSettings.from_dsn(settings.redis_url))
        return cls(pool)

    async def enqueue(self, function: str, **kwargs: Any) -> str:
        job = await self._pool.enqueue_job(function, **kwargs)
        if job is None:
            # arq returns None only when a job with the same id already exists.
            raise RuntimeError(f"job for {function} was not enqueued")
        log.info("job.enqueued", function=function, job_id=job.job_id)
        return job.job_id

    async def close(self) -> None:
        await self._pool.aclose()


@dataclass(frozen=True, slots=True)
class EnqueuedJob:
    job_id: str
    function: str
    kwargs: dict[str, Any] = field(default_factory=dict)


class LocalJobQueue(JobQueue):
    """
    Records jobs in process without running them.

    Used when no Redis is configured; nothing executes these jobs, so webhook delivery
    requires Redis plus the arq worker.
    """

    def __init__(self) -> None:
        self.jobs: list[EnqueuedJob] = []

    async def enqueue(self, function: str, **kwargs: Any) -> str:
        job = EnqueuedJob(job_id=uuid.uuid4().hex, function=function, kwargs=dict(kwargs))
        self.jobs.append(job)
        log.info("job.recorded", function=function, job_id=job.job_id)
        return job.job_id


async def create_job_queue(settings: Settings) -> JobQueue:
    if settings.redis_url:
        return await ArqJobQueue.connect(settings)
    return LocalJobQueue()


# --- Module Notes -----------------------------------------------------------
# Retry policy (max tries, exponential backoff) is applied by the task itself, see
# `jobs.tasks.backoff_seconds`.
