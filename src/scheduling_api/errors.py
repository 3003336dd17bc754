"""
scheduling_api.errors

Application-level exception types.

Responsibilities:
- Define errors raised by auth, services and infrastructure adapters.
- Carry the HTTP status, a stable machine-readable code and optional details so the
  API layer can render one consistent error envelope.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass
class AppError(Exception):
    """
    Base error for application failures.

    Subclasses pin `status_code` and `code`; callers supply the message and, when useful,
    structured `details` for clients.
    """

    status_code: ClassVar[int] = 500
    code: ClassVar[str] = "INTERNAL_SERVER_ERROR"

    message: str
    details: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class BadRequestError(AppError):
    status_code = 400
    code = "BAD_REQUEST"


class AuthenticationError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"


class ForbiddenError(AppError):
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"


class RateLimitExceededError(AppError):
    status_code = 429
    code = "TOO_MANY_REQUESTS"


# --- Module Notes -----------------------------------------------------------
# HTTP rendering lives in `api.exception_handlers`; services never build responses.
