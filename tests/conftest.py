"""
tests.conftest

Shared fixtures: an app booted through its lifespan against a throwaway SQLite file,
an httpx client bound to it, and a seeded dataset.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from scheduling_api.api.app import create_app
from scheduling_api.db.models import BookingStatus, UserRole
from scheduling_api.db.repositories.bookings import BookingRepo
from scheduling_api.db.repositories.users import UserRepo
from scheduling_api.db.repositories.webhooks import WebhookRepo
from scheduling_api.services.api_keys import ApiKeyService
from scheduling_api.services.oauth_tokens import OAuthTokenService
from scheduling_api.services.webhooks import WebhookTrigger
from scheduling_api.settings import Settings

WEBHOOK_SECRET = "whsec_test"


@dataclass
class Seed:
    user_id: int
    other_user_id: int
    api_key: str
    limited_api_key: str
    other_api_key: str
    oauth_client_id: str
    oauth_client_secret: str
    access_token: str
    refresh_token: str


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        redis_url=None,
        log_level="WARNING",
        rate_limit_default_limit=1000,
    )


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings)
    # httpx ASGITransport does not drive lifespan events; run them explicitly.
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def seed(app: FastAPI, settings: Settings) -> Seed:
    async with app.state.db.write_sessionmaker() as session:
        users = UserRepo(session)
        alice = await users.create(email="alice@example.com", name="Alice", role=UserRole.user)
        bob = await users.create(email="bob@example.com", name="Bob")

        bookings = BookingRepo(session)
        await bookings.create(
            uid="bk-alice-1",
            user_id=alice.id,
            title="Intro call",
            start_time=datetime(2030, 1, 1, 10, 0),
            end_time=datetime(2030, 1, 1, 10, 30),
            attendees=[("Carol", "carol@example.com", "Europe/Berlin")],
        )
        await bookings.create(
            uid="bk-alice-2",
            user_id=alice.id,
            title="Follow-up",
            start_time=datetime(2030, 1, 2, 9, 0),
            end_time=datetime(2030, 1, 2, 10, 0),
            status=BookingStatus.cancelled,
        )
        await bookings.create(
            uid="bk-alice-3",
            user_id=alice.id,
            title="Review",
            start_time=datetime(2030, 1, 3, 15, 0),
            end_time=datetime(2030, 1, 3, 15, 45),
            attendees=[("Dan", "dan@example.com", "UTC")],
        )
        await bookings.create(
            uid="bk-bob-1",
            user_id=bob.id,
            title="Bob's meeting",
            start_time=datetime(2030, 1, 1, 12, 0),
            end_time=datetime(2030, 1, 1, 12, 30),
        )

        webhooks = WebhookRepo(session)
        await webhooks.create(
            user_id=alice.id,
            subscriber_url="https://hooks.example.com/alice",
            event_triggers=[WebhookTrigger.booking_cancelled.value],
            secret=WEBHOOK_SECRET,
        )
        await webhooks.create(
            user_id=alice.id,
            subscriber_url="https://hooks.example.com/inactive",
            event_triggers=[WebhookTrigger.booking_cancelled.value],
            active=False,
        )
        await session.commit()

        keys = ApiKeyService(session=session, settings=settings, cache=app.state.cache)
        api_key = await keys.create(user_id=alice.id, note="default")
        limited = await keys.create(
            user_id=alice.id,
            note="limited",
            rate_limits=[("short", 2, 60, 0), ("long", 100, 3600, 0)],
        )
        other = await keys.create(user_id=bob.id)

        oauth = OAuthTokenService(session=session, settings=settings, cache=app.state.cache)
        registered = await oauth.register_client(name="Acme Scheduling")
        pair = await oauth.issue(client_id=registered.client.id, user_id=alice.id)

        return Seed(
            user_id=alice.id,
            other_user_id=bob.id,
            api_key=api_key.plaintext,
            limited_api_key=limited.plaintext,
            other_api_key=other.plaintext,
            oauth_client_id=registered.client.id,
            oauth_client_secret=registered.secret,
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        )


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
