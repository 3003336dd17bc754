"""
scheduling_api.api.exception_handlers

Exception handlers ("exception filters") rendering the error envelope.

Responsibilities:
- Map application, HTTP, validation and database errors to status codes.
- Log 4xx as warnings and 5xx with tracebacks, never leaking internals to clients.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import DBAPIError, IntegrityError, NoResultFound
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from scheduling_api.api.schemas import error_response
from scheduling_api.errors import AppError
from scheduling_api.observability.logging import get_logger

log = get_logger(__name__)


def _status_code_name(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).name
    except ValueError:
        return "ERROR"


def _render(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return error_response(
        status_code=status_code,
        code=code,
        message=message,
        path=request.url.path,
        details=details,
        request_id=getattr(request.state, "request_id", None),
        headers=headers or None,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("request.app_error", code=exc.code, message=exc.message, exc_info=exc)
    else:
        log.warning("request.app_error", code=exc.code, message=exc.message)
    return _render(
        request,
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    log.warning("request.http_error", status_code=exc.status_code, detail=exc.detail)
    return _render(
        request,
        status_code=exc.status_code,
        code=_status_code_name(exc.status_code),
        message=str(exc.detail),
        headers=dict(exc.headers) if exc.headers else None,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    log.warning("request.validation_error", errors=len(errors))
    return _render(
        request,
        status_code=400,
        code="BAD_REQUEST",
        message="Request validation failed",
        details={"errors": errors},
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    log.warning("request.integrity_error", error=type(exc.orig).__name__)
    return _render(
        request,
        status_code=409,
        code="CONFLICT",
        message="Resource conflicts with existing data",
    )


async def no_result_handler(request: Request, exc: NoResultFound) -> JSONResponse:
    return _render(request, status_code=404, code="NOT_FOUND", message="Resource not found")


async def database_error_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    log.error("request.database_error", exc_info=exc)
    return _render(
        request,
        status_code=503,
        code="SERVICE_UNAVAILABLE",
        message="Database unavailable",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error("request.unhandled_error", exc_info=exc)
    return _render(
        request,
        status_code=500,
        code="INTERNAL_SERVER_ERROR",
        message="Internal server error",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    # IntegrityError subclasses DBAPIError; Starlette picks the most specific handler (MRO).
    app.add_exception_handler(IntegrityError, integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DBAPIError, database_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(NoResultFound, no_result_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)


# --- Module Notes -----------------------------------------------------------
# `Exception` is served by Starlette's ServerErrorMiddleware, which re-raises after the
# response is sent so the server still records the crash.
