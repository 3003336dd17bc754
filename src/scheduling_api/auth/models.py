"""
scheduling_api.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) injected into endpoints.
- Round-trip principals through the guard-result cache.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from typing import Any


class AuthMethod(enum.StrEnum):
    api_key = "api_key"
    access_token = "access_token"
    session = "session"


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity.
    """

    user_id: int
    email: str
    role: str
    auth_method: AuthMethod
    api_key_id: uuid.UUID | None = None
    oauth_client_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"

    def to_cache(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "role": self.role,
            "auth_method": self.auth_method.value,
            "api_key_id": str(self.api_key_id) if self.api_key_id else None,
            "oauth_client_id": self.oauth_client_id,
        }

    @classmethod
    def from_cache(cls, data: dict[str, Any]) -> Principal:
        api_key_id = data.get("api_key_id")
        return cls(
            user_id=int(data["user_id"]),
            email=str(data["email"]),
            role=str(data["role"]),
            auth_method=AuthMethod(data["auth_method"]),
            api_key_id=uuid.UUID(api_key_id) if api_key_id else None,
            oauth_client_id=data.get("oauth_client_id"),
        )


# --- Module Notes -----------------------------------------------------------
# Keep this model minimal; it is cached in Redis and shared across API, services and logs.
