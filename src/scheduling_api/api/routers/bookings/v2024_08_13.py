"""
scheduling_api.api.routers.bookings.v2024_08_13

Booking endpoints for API version 2024-08-13.

Responsibilities:
- Same operations as 2024-04-15 with the reshaped contract: `start`/`end`/`duration`,
  lower-case statuses, attendee `absent` flag and a pagination block on lists.
"""

from __future__ import annotations

import enum
import math
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.api.deps import db_read_session, db_write_session, job_queue_dep
from scheduling_api.api.schemas import ApiResponse, CamelModel
from scheduling_api.api.versioning import VERSION_2024_08_13, versioned_route
from scheduling_api.auth.deps import get_principal
from scheduling_api.auth.models import Principal
from scheduling_api.db.models import Booking, BookingStatus
from scheduling_api.jobs.queue import JobQueue
from scheduling_api.services.bookings import BookingService

router = APIRouter(
    prefix="/v2/bookings",
    tags=["bookings"],
    route_class=versioned_route(VERSION_2024_08_13),
)


class BookingStatusFilter(enum.StrEnum):
    accepted = "accepted"
    pending = "pending"
    cancelled = "cancelled"
    rejected = "rejected"


class AttendeeOutput(CamelModel):
    name: str
    email: str
    time_zone: str
    absent: bool


class BookingOutput(CamelModel):
    id: int
    uid: str
    title: str
    event_type_id: int | None
    start: datetime
    end: datetime
    duration: int
    status: str
    cancellation_reason: str | None
    attendees: list[AttendeeOutput]


class PaginationOutput(CamelModel):
    total_items: int
    returned_items: int
    items_per_page: int
    current_page: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class BookingsPageOutput(CamelModel):
    status: Literal["success"] = "success"
    data: list[BookingOutput]
    pagination: PaginationOutput


class CancelBookingInput(CamelModel):
    cancellation_reason: str | None = Field(default=None, max_length=1024)


def to_output(b: Booking) -> BookingOutput:
    return BookingOutput(
        id=b.id,
        uid=b.uid,
        title=b.title,
        event_type_id=b.event_type_id,
        start=b.start_time.replace(tzinfo=UTC),
        end=b.end_time.replace(tzinfo=UTC),
        duration=int((b.end_time - b.start_time).total_seconds() // 60),
        status=b.status.value.lower(),
        cancellation_reason=b.cancellation_reason,
        attendees=[
            AttendeeOutput(name=a.name, email=a.email, time_zone=a.time_zone, absent=a.no_show)
            for a in b.attendees
        ],
    )


def paginate(*, total: int, returned: int, skip: int, take: int) -> PaginationOutput:
    total_pages = math.ceil(total / take) if total else 0
    return PaginationOutput(
        total_items=total,
        returned_items=returned,
        items_per_page=take,
        current_page=skip // take + 1,
        total_pages=total_pages,
        has_next_page=skip + returned < total,
        has_previous_page=skip > 0,
    )


@router.get("", response_model=BookingsPageOutput)
async def list_bookings_2024_08_13(
    status: BookingStatusFilter | None = Query(default=None),
    take: int = Query(default=100, ge=1, le=250),
    skip: int = Query(default=0, ge=0),
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_read_session),
) -> BookingsPageOutput:
    bookings, total = await BookingService(read_session=session).list_bookings(
        principal,
        status=BookingStatus(status.value.upper()) if status else None,
        skip=skip,
        take=take,
    )
    return BookingsPageOutput(
        data=[to_output(b) for b in bookings],
        pagination=paginate(total=total, returned=len(bookings), skip=skip, take=take),
    )


@router.get("/{uid}", response_model=ApiResponse[BookingOutput])
async def get_booking_2024_08_13(
    uid: str,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_read_session),
) -> ApiResponse[BookingOutput]:
    booking = await BookingService(read_session=session).get_booking(principal, uid)
    return ApiResponse(data=to_output(booking))


@router.post("/{uid}/cancel", response_model=ApiResponse[BookingOutput])
async def cancel_booking_2024_08_13(
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


# --- Module Notes -----------------------------------------------------------
# Shapes here are a contract for clients pinned to 2024-08-13; breaking changes need a
# new dated module, not edits to this one.
