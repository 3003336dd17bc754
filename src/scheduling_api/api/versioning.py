"""
scheduling_api.api.versioning

Date-based API versioning.

Responsibilities:
- Resolve the requested API version from a request header (default when absent).
- Reject unknown versions before routing.
- Let dated routers ("controller namespaces") serve the same path for different versions.

A router opts in with `APIRouter(route_class=versioned_route(VERSION_2024_08_13))`;
routers without a versioned route class are version-neutral.
"""

from __future__ import annotations

from fastapi.routing import APIRoute
from starlette.datastructures import Headers, MutableHeaders
from starlette.routing import Match
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from scheduling_api.api.schemas import error_response

VERSION_2024_04_15 = "2024-04-15"
VERSION_2024_08_13 = "2024-08-13"

SUPPORTED_API_VERSIONS: tuple[str, ...] = (VERSION_2024_04_15, VERSION_2024_08_13)
DEFAULT_API_VERSION = VERSION_2024_04_15

STATE_KEY = "api_version"


class UnsupportedApiVersion(ValueError):
    pass


def resolve_api_version(value: str | None) -> str:
    requested = (value or "").strip()
    if not requested:
        return DEFAULT_API_VERSION
    if requested not in SUPPORTED_API_VERSIONS:
        raise UnsupportedApiVersion(requested)
    return requested


def scope_api_version(scope: Scope) -> str:
    return scope.get("state", {}).get(STATE_KEY, DEFAULT_API_VERSION)


class VersionedAPIRoute(APIRoute):
    versions: frozenset[str] = frozenset()

    def matches(self, scope: Scope) -> tuple[Match, Scope]:
        match, child_scope = super().matches(scope)
        if match is not Match.NONE and scope_api_version(scope) not in self.versions:
            # Let the router keep looking: another dated route may own this version.
            return Match.NONE, {}
        return match, child_scope


def versioned_route(*versions: str) -> type[APIRoute]:
    unknown = set(versions) - set(SUPPORTED_API_VERSIONS)
    if not versions or unknown:
        raise ValueError(f"invalid API versions: {sorted(unknown) or versions}")
    suffix = "_".join(v.replace("-", "") for v in versions)
    return type(
        f"VersionedAPIRoute_{suffix}",
        (VersionedAPIRoute,),
        {"versions": frozenset(versions)},
    )


class ApiVersionMiddleware:
    """
    Pure ASGI middleware: resolves the version header, stores it in the request scope
    state and echoes it on the response.
    """

    def __init__(self, app: ASGIApp, *, header_name: str) -> None:
        self.app = app
        self.header_name = header_name.lower()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        raw = Headers(scope=scope).get(self.header_name)
        try:
            version = resolve_api_version(raw)
        except UnsupportedApiVersion:
            response = error_response(
                status_code=400,
                code="BAD_REQUEST",
                message=f"Unsupported API version '{raw}'",
                path=scope.get("path", ""),
                details={"supportedVersions": list(SUPPORTED_API_VERSIONS)},
            )
            await response(scope, receive, send)
            return

        scope.setdefault("state", {})[STATE_KEY] = version

        async def send_with_version(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[self.header_name] = version
            await send(message)

        await self.app(scope, receive, send_with_version)


# --- Module Notes -----------------------------------------------------------
# Adding a version: add the constant to SUPPORTED_API_VERSIONS, then a dated router for
# every resource whose contract changes; unchanged resources stay version-neutral.
