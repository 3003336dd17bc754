"""
scheduling_api.api.routers.oauth

OAuth2 token endpoints for platform clients.

Responsibilities:
- Rotate an access/refresh token pair; the client authenticates with its secret header.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Header
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.api.deps import cache_dep, db_write_session, settings_dep
from scheduling_api.api.schemas import ApiResponse, CamelModel
from scheduling_api.cache.base import AbstractCache
from scheduling_api.services.oauth_tokens import OAuthTokenService
from scheduling_api.settings import Settings

router = APIRouter(prefix="/v2/oauth", tags=["oauth"])

CLIENT_SECRET_HEADER = "x-sched-secret-key"


class RefreshTokenInput(CamelModel):
    refresh_token: str = Field(min_length=1)


class TokensOutput(CamelModel):
    access_token: str
    refresh_token: str
    access_token_expires_at: datetime


@router.post("/{client_id}/refresh", response_model=ApiResponse[TokensOutput])
async def refresh_tokens(
    client_id: str,
    body: RefreshTokenInput,
    client_secret: Annotated[str, Header(alias=CLIENT_SECRET_HEADER)],
    session: AsyncSession = Depends(db_write_session),
    settings: Settings = Depends(settings_dep),
    cache: AbstractCache = Depends(cache_dep),
) -> ApiResponse[TokensOutput]:
    svc = OAuthTokenService(session=session, settings=settings, cache=cache)
    pair = await svc.refresh(
        client_id=client_id, client_secret=client_secret, refresh_token=body.refresh_token
    )
    return ApiResponse(
        data=TokensOutput(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            access_token_expires_at=pair.access_token_expires_at.replace(tzinfo=UTC),
        )
    )
