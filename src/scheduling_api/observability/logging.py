"""
scheduling_api.observability.logging

structlog setup shared by the API process and the arq worker.

Responsibilities:
- Render every event as one JSON line (contextvars, level, logger, UTC timestamp, service).
- Redact credential-bearing fields before rendering.
- Hand out bound loggers.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from typing import Any

import structlog

REDACTED = "[REDACTED]"

SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "api_key",
        "authorization",
        "client_secret",
        "cookie",
        "password",
        "refresh_token",
        "access_token",
        "secret",
        "session_token",
        "set-cookie",
        "token",
    }
)

# Third-party loggers that log every outbound request or poll at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "arq.worker")


def configure_logging(*, service_name: str, level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service_name(service_name),
            redact_sensitive(SENSITIVE_KEYS),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _add_service_name(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def redact_sensitive(keys: Iterable[str]):
    """
    Build a processor that masks top-level event fields whose name is sensitive
    (case-insensitive). Nested values are left alone; log digests, not payloads.
    """

    lowered = frozenset(k.lower() for k in keys)

    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        for key in event_dict:
            if key.lower() in lowered and event_dict[key] is not None:
                event_dict[key] = REDACTED
        return event_dict

    return processor


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# --- Module Notes -----------------------------------------------------------
# Request-scoped fields (request_id, path, method) come from contextvars bound in
# `observability.middleware`; the worker binds none, so its events carry only `service`.
