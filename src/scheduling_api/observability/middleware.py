"""
scheduling_api.observability.middleware

Per-request log context and access logging.

Responsibilities:
- Accept or mint an `x-request-id` and echo it on the response.
- Bind request metadata into structlog contextvars for every event logged during the request.
- Emit one `request.completed` event with status, latency, API version and caller.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from scheduling_api.observability.logging import get_logger

log = get_logger(__name__)

REQUEST_ID_HEADER = "x-request-id"


def _caller_fields(request: Request) -> dict[str, object]:
    # Set by `auth.deps.get_principal` when the route authenticated the caller.
    principal = getattr(request.state, "principal", None)
    if principal is None:
        return {}
    return {"user_id": principal.user_id, "auth_method": principal.auth_method.value}


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
        )
        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
            log.info(
                "request.completed",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                api_version=getattr(request.state, "api_version", None),
                **_caller_fields(request),
            )
        finally:
            structlog.contextvars.clear_contextvars()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


# --- Module Notes -----------------------------------------------------------
# Registered outermost (see `api.app`), so the version middleware and every router run
# inside this request context.
