from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.db.models import Webhook


class WebhookRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: int,
        subscriber_url: str,
        event_triggers: list[str],
        secret: str | None = None,
        active: bool = True,
    ) -> Webhook:
        hook = Webhook(
            user_id=user_id,
            subscriber_url=subscriber_url,
            event_triggers=event_triggers,
            secret=secret,
            active=active,
        )
        self._session.add(hook)
        await self._session.flush()
        return hook

    async def active_for_trigger(self, *, user_id: int, trigger: str) -> list[Webhook]:
        # Triggers live in a JSON list; filter in Python to stay portable across backends.
        stmt = select(Webhook).where(Webhook.user_id == user_id, Webhook.active.is_(True))
        hooks = (await self._session.execute(stmt)).scalars().all()
        return [h for h in hooks if trigger in (h.event_triggers or [])]
