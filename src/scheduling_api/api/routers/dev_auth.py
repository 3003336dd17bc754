from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, Response
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.api.deps import db_read_session, settings_dep
from scheduling_api.api.schemas import ApiResponse, CamelModel
from scheduling_api.auth.jwt import issue_token, session_config
from scheduling_api.db.repositories.users import UserRepo
from scheduling_api.errors import NotFoundError
from scheduling_api.settings import Settings

router = APIRouter(prefix="/v2/dev", tags=["dev"])


class DevSessionRequest(CamelModel):
    user_id: int = Field(ge=1)
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevSessionResponse(CamelModel):
    session_token: str
    cookie_name: str


@router.post("/session-token", response_model=ApiResponse[DevSessionResponse])
async def mint_dev_session(
    body: DevSessionRequest,
    response: Response,
    settings: Settings = Depends(settings_dep),
    session: AsyncSession = Depends(db_read_session),
) -> ApiResponse[DevSessionResponse]:
    if settings.env == "prod":
        raise NotFoundError("Not found")

    user = await UserRepo(session).get(body.user_id)
    if user is None:
        raise NotFoundError("User not found")

    ttl = timedelta(minutes=body.ttl_minutes)
    token = issue_token(
        cfg=session_config(settings),
        subject=str(user.id),
        claims={"email": user.email},
        ttl=ttl,
    )
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=int(ttl.total_seconds()),
        httponly=True,
        samesite="lax",
    )
    return ApiResponse(
        data=DevSessionResponse(session_token=token, cookie_name=settings.session_cookie_name)
    )
