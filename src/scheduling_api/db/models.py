"""
scheduling_api.db.models

Persistence schema for the scheduling API.

Responsibilities:
- Define ORM models for the entities the API infrastructure touches:
  - User / EventType / Booking / Attendee: the scheduling core exposed read-mostly
  - ApiKey / RateLimit: API-key authentication and per-key throttling
  - OAuthClient / AccessToken / RefreshToken: OAuth2 platform clients
  - Webhook: booking event subscribers served by background jobs
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from scheduling_api.db.base import Base


def utcnow() -> datetime:
    # Persist naive UTC timestamps; every comparison in the codebase uses this helper.
    return datetime.now(tz=UTC).replace(tzinfo=None)


def _client_id() -> str:
    return uuid.uuid4().hex


class UserRole(enum.StrEnum):
    user = "USER"
    admin = "ADMIN"


class BookingStatus(enum.StrEnum):
    # Enum values are stored in DB; treat as stable API contract.
    accepted = "ACCEPTED"
    pending = "PENDING"
    cancelled = "CANCELLED"
    rejected = "REJECTED"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    time_zone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), nullable=False, default=UserRole.user)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)


class EventType(Base):
    __tablename__ = "event_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    slug: Mapped[str] = mapped_column(String(256), nullable=False)
    length_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=30)


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uid: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    event_type_id: Mapped[int | None] = mapped_column(
        ForeignKey("event_types.id"), nullable=True, index=True
    )

    title: Mapped[str] = mapped_column(String(256), nullable=False)
    start_time: Mapped[datetime] = mapped_column(nullable=False)
    end_time: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), nullable=False, default=BookingStatus.accepted, index=True
    )
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    attendees: Mapped[list[Attendee]] = relationship(
        back_populates="booking", cascade="all, delete-orphan", order_by="Attendee.id"
    )

    __table_args__ = (Index("ix_bookings_user_start", "user_id", "start_time"),)


class Attendee(Base):
    __tablename__ = "attendees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(ForeignKey("bookings.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    time_zone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")
    no_show: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    booking: Mapped[Booking] = relationship(back_populates="attendees")


class ApiKey(Base):
    __tablename__ = "api_keys"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    # SHA-256 of the key without its prefix; the plaintext is shown once at creation.
    hashed_key: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    note: Mapped[str | None] = mapped_column(String(256), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    rate_limits: Mapped[list[RateLimit]] = relationship(
        back_populates="api_key", cascade="all, delete-orphan", order_by="RateLimit.name"
    )


class RateLimit(Base):
    __tablename__ = "rate_limits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    api_key_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("api_keys.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    limit: Mapped[int] = mapped_column(Integer, nullable=False)
    window_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    block_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    api_key: Mapped[ApiKey] = relationship(back_populates="rate_limits")

    __table_args__ = (Index("ux_rate_limits_key_name", "api_key_id", "name", unique=True),)


class OAuthClient(Base):
    __tablename__ = "oauth_clients"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_client_id)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    hashed_secret: Mapped[str] = mapped_column(String(64), nullable=False)
    redirect_uris: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)


class AccessToken(Base):
    __tablename__ = "access_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    client_id: Mapped[str] = mapped_column(
        ForeignKey("oauth_clients.id"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    client_id: Mapped[str] = mapped_column(
        ForeignKey("oauth_clients.id"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)


class Webhook(Base):
    __tablename__ = "webhooks"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    subscriber_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    secret: Mapped[str | None] = mapped_column(String(256), nullable=True)
    event_triggers: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)


# --- Module Notes -----------------------------------------------------------
# Tokens and API keys are stored hashed only; lookups hash the presented credential.
