"""
scheduling_api.api.routers.bookings.v2024_04_15

Booking endpoints for API version 2024-04-15.

Responsibilities:
- List/get the caller's bookings (read replica).
- Cancel a booking (primary) and trigger webhooks.
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.api.deps import db_read_session, db_write_session, job_queue_dep
from scheduling_api.api.schemas import ApiResponse, CamelModel
from scheduling_api.api.versioning import VERSION_2024_04_15, versioned_route
from scheduling_api.auth.deps import get_principal
from scheduling_api.auth.models import Principal
from scheduling_api.db.models import Booking, BookingStatus
from scheduling_api.jobs.queue import JobQueue
from scheduling_api.services.bookings import BookingService

router = APIRouter(
    prefix="/v2/bookings",
    tags=["bookings"],
    route_class=versioned_route(VERSION_2024_04_15),
)


class AttendeeOutput(CamelModel):
    name: str
    email: str
    time_zone: str


class BookingOutput(CamelModel):
    id: int
    uid: str
    title: str
    event_type_id: int | None
    start_time: datetime
    end_time: datetime
    status: str
    cancellation_reason: str | None
    attendees: list[AttendeeOutput]


class CancelBookingInput(CamelModel):
    cancellation_reason: str | None = Field(default=None, max_length=1024)


def to_output(b: Booking) -> BookingOutput:
    return BookingOutput(
        id=b.id,
        uid=b.uid,
        title=b.title,
        event_type_id=b.event_type_id,
        start_time=b.start_time.replace(tzinfo=UTC),
        end_time=b.end_time.replace(tzinfo=UTC),
        status=b.status.value,
        cancellation_reason=b.cancellation_reason,
        attendees=[
            AttendeeOutput(name=a.name, email=a.email, time_zone=a.time_zone) for a in b.attendees
        ],
    )


@router.get("", response_model=ApiResponse[list[BookingOutput]])
async def list_bookings_2024_04_15(
    status: BookingStatus | None = Query(default=None),
    take: int = Query(default=100, ge=1, le=250),
    skip: int = Query(default=0, ge=0),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_read_session),
) -> ApiResponse[list[BookingOutput]]:
    bookings, _ = await BookingService(read_session=session).list_bookings(
        principal, status=status, skip=skip, take=take
    )
    return ApiResponse(data=[to_output(b) for b in bookings])


@router.get("/{uid}", response_model=ApiResponse[BookingOutput])
async def get_booking_2024_04_15(
    uid: str,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_read_session),
) -> ApiResponse[BookingOutput]:
    booking = await BookingService(read_session=session).get_booking(principal, uid)
    return ApiResponse(data=to_output(booking))


@router.post("/{uid}/cancel", response_model=ApiResponse[BookingOutput])
async def cancel_booking_2024_04_15(
    uid: str,
    body: CancelBookingInput | None = None,
    principal: Principal = Depends(get_principal),
    write_session: AsyncSession = Depends(db_write_session),
    jobs: JobQueue = Depends(job_queue_dep),
) -> ApiResponse[BookingOutput]:
    svc = BookingService(write_session=write_session, jobs=jobs)
    reason = body.cancellation_reason if body else None
    booking = await svc.cancel(principal, uid, reason=reason)
    return ApiResponse(data=to_output(booking))
