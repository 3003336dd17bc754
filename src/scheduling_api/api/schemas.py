"""
scheduling_api.api.schemas

Shared HTTP schemas.

Responsibilities:
- camelCase base model for request/response bodies.
- Success envelope (`{"status": "success", "data": ...}`).
- Error envelope builder shared by exception handlers and middleware.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from starlette.responses import JSONResponse

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[T]):
    status: Literal["success"] = "success"
    data: T


def error_body(
    *,
    code: str,
    message: str,
    path: str,
    details: Any = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "status": "error",
        "timestamp": datetime.now(tz=UTC).isoformat(),
        "path": path,
        "error": {"code": code, "message": message, "details": details},
    }
    if request_id:
        body["requestId"] = request_id
    return body


def error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    path: str,
    details: Any = None,
    request_id: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_body(
            code=code,
            message=message,
            path=path,
            details=details,
            request_id=request_id,
        ),
        headers=headers,
    )


# --- Module Notes -----------------------------------------------------------
# Clients branch on `status` first, then on `error.code`; both are stable contract.
