"""
scheduling_api.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert the request credential into a typed `Principal` via the caching guard.
- Restrict endpoints to specific auth methods via a dependency factory.
"""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.api.deps import cache_dep, db_read_session, settings_dep
from scheduling_api.auth.guard import AuthGuard
from scheduling_api.auth.models import AuthMethod, Principal
from scheduling_api.auth.strategies import extract_credential
from scheduling_api.cache.base import AbstractCache
from scheduling_api.errors import ForbiddenError
from scheduling_api.settings import Settings


async def get_principal(
    request: Request,
    settings: Settings = Depends(settings_dep),
    cache: AbstractCache = Depends(cache_dep),
    session: AsyncSession = Depends(db_read_session),
) -> Principal:
    guard = AuthGuard(settings=settings, cache=cache, session=session)
    principal = await guard.authenticate(extract_credential(request, settings))
    request.state.principal = principal
    return principal


def require_auth_methods(*allowed: AuthMethod):
    allowed_set = frozenset(allowed)

    def _dep(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.auth_method not in allowed_set:
            methods = ", ".join(sorted(m.value for m in allowed_set))
            raise ForbiddenError(f"This endpoint requires authentication via: {methods}")
        return principal

    return _dep


# --- Module Notes -----------------------------------------------------------
# FastAPI caches `get_principal` per request, so combining it with
# `require_auth_methods` on one endpoint authenticates once.
