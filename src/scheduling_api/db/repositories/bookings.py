"""
scheduling_api.db.repositories.bookings

Repository for `Booking` entities (with attendees eagerly loaded).

Responsibilities:
- Page through a user's bookings with an optional status filter.
- Fetch a booking by uid, optionally locked for update on the primary.
- Create bookings (seeding, tests).
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from scheduling_api.db.models import Attendee, Booking, BookingStatus


class BookingRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        uid: str,
        user_id: int,
        title: str,
        start_time: datetime,
        end_time: datetime,
        event_type_id: int | None = None,
        status: BookingStatus = BookingStatus.accepted,
        attendees: Iterable[tuple[str, str, str]] = (),
    ) -> Booking:
        # attendees: (name, email, time_zone)
        booking = Booking(
            uid=uid,
            user_id=user_id,
            title=title,
            start_time=start_time,
            end_time=end_time,
            event_type_id=event_type_id,
            status=status,
            attendees=[Attendee(name=n, email=e, time_zone=tz) for n, e, tz in attendees],
        )
        self._session.add(booking)
        await self._session.flush()
        return booking

    async def list_for_user(
        self,
        user_id: int,
        *,
        status: BookingStatus | None = None,
        skip: int = 0,
        take: int = 100,
    ) -> tuple[list[Booking], int]:
        """
        Return one page of bookings (ordered by start time) and the total match count.
        """

        filters = [Booking.user_id == user_id]
        if status is not None:
            filters.append(Booking.status == status)

        total_stmt = select(func.count()).select_from(Booking).where(*filters)
        total = (await self._session.execute(total_stmt)).scalar_one()

        stmt = (
            select(Booking)
            .where(*filters)
            .options(selectinload(Booking.attendees))
            .order_by(Booking.start_time, Booking.id)
            .offset(skip)
            .limit(take)
        )
        return list((await self._session.execute(stmt)).scalars().all()), total

    async def get_by_uid(self, uid: str, *, for_update: bool = False) -> Booking | None:
        stmt = select(Booking).where(Booking.uid == uid).options(selectinload(Booking.attendees))
        if for_update:
            # Cancellation locks the row to avoid concurrent writers clobbering status.
            stmt = stmt.with_for_update()
        return (await self._session.execute(stmt)).scalar_one_or_none()


# --- Module Notes -----------------------------------------------------------
# Attendees are always loaded eagerly: async sessions cannot lazy-load relationships.
