"""
scheduling_api.api.routers.api_keys

API key self-service endpoints.

Responsibilities:
- Rotate the API key used to authenticate the request.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.api.deps import cache_dep, db_write_session, settings_dep
from scheduling_api.api.schemas import ApiResponse, CamelModel
from scheduling_api.auth.deps import require_auth_methods
from scheduling_api.auth.models import AuthMethod, Principal
from scheduling_api.cache.base import AbstractCache
from scheduling_api.db.models import utcnow
from scheduling_api.services.api_keys import ApiKeyService
from scheduling_api.settings import Settings

router = APIRouter(prefix="/v2/api-keys", tags=["api-keys"])


class RefreshApiKeyInput(CamelModel):
    # None keeps the old key's expiry.
    api_key_days_valid: int | None = Field(default=None, ge=1, le=3650)
    api_key_never_expires: bool = False


class RefreshApiKeyOutput(CamelModel):
    api_key: str
    expires_at: datetime | None


@router.post("/refresh", response_model=ApiResponse[RefreshApiKeyOutput])
async def refresh_api_key(
    body: RefreshApiKeyInput | None = None,
    principal: Principal = Depends(require_auth_methods(AuthMethod.api_key)),
    session: AsyncSession = Depends(db_write_session),
    settings: Settings = Depends(settings_dep),
    cache: AbstractCache = Depends(cache_dep),
) -> ApiResponse[RefreshApiKeyOutput]:
    body = body or RefreshApiKeyInput()
    svc = ApiKeyService(session=session, settings=settings, cache=cache)

    if body.api_key_never_expires:
        issued = await svc.refresh(principal=principal, expires_at=None, keep_expiry=False)
    elif body.api_key_days_valid is not None:
        expires_at = utcnow() + timedelta(days=body.api_key_days_valid)
        issued = await svc.refresh(principal=principal, expires_at=expires_at, keep_expiry=False)
    else:
        issued = await svc.refresh(principal=principal)

    expires = issued.api_key.expires_at
    return ApiResponse(
        data=RefreshApiKeyOutput(
            api_key=issued.plaintext,
            expires_at=expires.replace(tzinfo=UTC) if expires else None,
        )
    )
