"""
scheduling_api.db.session

Async SQLAlchemy engines + session factories with a read/write split.

Responsibilities:
- Create the primary (write) engine and, when configured, a read-replica engine.
- Apply fixed-size connection pools to server databases.
- Provide the async sessionmakers used by request dependencies and the job worker.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from scheduling_api.settings import Settings


@dataclass(frozen=True, slots=True)
class DatabaseClients:
    write_engine: AsyncEngine
    read_engine: AsyncEngine
    write_sessionmaker: async_sessionmaker[AsyncSession]
    read_sessionmaker: async_sessionmaker[AsyncSession]

    @property
    def has_replica(self) -> bool:
        return self.read_engine is not self.write_engine

    async def dispose(self) -> None:
        # Dispose engines to close pools/FDs gracefully.
        if self.has_replica:
            await self.read_engine.dispose()
        await self.write_engine.dispose()


def _pool_kwargs(url: str, settings: Settings) -> dict[str, Any]:
    # SQLite uses single-connection/file pools that reject sizing arguments.
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout_seconds,
    }


def create_engine(url: str, settings: Settings) -> AsyncEngine:
    # pool_pre_ping helps detect stale connections in long-lived processes.
    return create_async_engine(
        url,
        pool_pre_ping=True,
        **_pool_kwargs(url, settings),
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False avoids surprising lazy loads after commits.
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


def create_database_clients(settings: Settings) -> DatabaseClients:
    write_engine = create_engine(settings.database_url, settings)
    if settings.database_read_url and settings.database_read_url != settings.database_url:
        read_engine = create_engine(settings.database_read_url, settings)
    else:
        # No replica: reads share the primary pool.
        read_engine = write_engine
    return DatabaseClients(
        write_engine=write_engine,
        read_engine=read_engine,
        write_sessionmaker=create_sessionmaker(write_engine),
        read_sessionmaker=create_sessionmaker(read_engine),
    )


# --- Module Notes -----------------------------------------------------------
# Replica reads are eventually consistent: a read issued right after a write may not
# observe it. Flows that must read their own writes use the write session.
