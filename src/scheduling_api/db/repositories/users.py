from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.db.models import User, UserRole


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        email: str,
        name: str | None = None,
        time_zone: str = "UTC",
        role: UserRole = UserRole.user,
    ) -> User:
        user = User(email=email, name=name, time_zone=time_zone, role=role)
        self._session.add(user)
        await self._session.flush()
        return user

    async def get(self, user_id: int) -> User | None:
        return await self._session.get(User, user_id)
