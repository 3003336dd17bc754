"""
scheduling_api.services.bookings

Booking read/cancel service.

Responsibilities:
- Serve booking queries from the read replica.
- Cancel bookings on the primary (row locked), then fan out webhooks.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.auth.models import Principal
from scheduling_api.db.models import Booking, BookingStatus
from scheduling_api.db.repositories.bookings import BookingRepo
from scheduling_api.errors import ConflictError, NotFoundError
from scheduling_api.jobs.queue import JobQueue
from scheduling_api.observability.logging import get_logger
from scheduling_api.services.webhooks import WebhookDispatcher, WebhookTrigger

log = get_logger(__name__)


def _visible_to(booking: Booking, principal: Principal) -> bool:
    return booking.user_id == principal.user_id or principal.is_admin


def webhook_payload(booking: Booking) -> dict:
    return {
        "bookingId": booking.id,
        "uid": booking.uid,
        "title": booking.title,
        "eventTypeId": booking.event_type_id,
        "startTime": booking.start_time.isoformat() + "Z",
        "endTime": booking.end_time.isoformat() + "Z",
        "status": booking.status.value,
        "cancellationReason": booking.cancellation_reason,
        "attendees": [{"name": a.name, "email": a.email} for a in booking.attendees],
    }


class BookingService:
    def __init__(
        self,
        *,
        read_session: AsyncSession | None = None,
        write_session: AsyncSession | None = None,
        jobs: JobQueue | None = None,
    ) -> None:
        self._read = BookingRepo(read_session) if read_session is not None else None
        self._write_session = write_session
        self._jobs = jobs

    async def list_bookings(
        self,
        principal: Principal,
        *,
        status: BookingStatus | None = None,
        skip: int = 0,
        take: int = 100,
    ) -> tuple[list[Booking], int]:
        if self._read is None:
            raise RuntimeError("queries require a read session")
        return await self._read.list_for_user(
            principal.user_id, status=status, skip=skip, take=take
        )

    async def get_booking(self, principal: Principal, uid: str) -> Booking:
        if self._read is None:
            raise RuntimeError("queries require a read session")
        booking = await self._read.get_by_uid(uid)
        if booking is None or not _visible_to(booking, principal):
            # Foreign bookings are reported as missing to avoid leaking existence.
            raise NotFoundError(f"Booking with uid={uid} not found")
        return booking

    async def cancel(self, principal: Principal, uid: str, *, reason: str | None) -> Booking:
        if self._write_session is None or self._jobs is None:
            raise RuntimeError("cancel requires a write session and a job queue")

        booking = await BookingRepo(self._write_session).get_by_uid(uid, for_update=True)
        if booking is None or not _visible_to(booking, principal):
            raise NotFoundError(f"Booking with uid={uid} not found")
        if booking.status is BookingStatus.cancelled:
            raise ConflictError(f"Booking with uid={uid} is already cancelled")

        booking.status = BookingStatus.cancelled
        booking.cancellation_reason = reason
        await self._write_session.commit()
        log.info("booking.cancelled", booking_id=booking.id, user_id=principal.user_id)

        # Enqueue after commit so workers never deliver an event that was rolled back.
        dispatcher = WebhookDispatcher(session=self._write_session, jobs=self._jobs)
        await dispatcher.dispatch(
            user_id=booking.user_id,
            trigger=WebhookTrigger.booking_cancelled,
            payload=webhook_payload(booking),
        )
        return booking


# --- Module Notes -----------------------------------------------------------
# Responses after a cancel are built from the primary's row, not re-read from the
# replica, so callers always see their own write.
