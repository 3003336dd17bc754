"""
scheduling_api.api.routers.me

Authenticated user profile (version-neutral).

Responsibilities:
- Return the profile of whoever authenticated, regardless of auth method.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from scheduling_api.api.deps import db_read_session
from scheduling_api.api.schemas import ApiResponse, CamelModel
from scheduling_api.auth.deps import get_principal
from scheduling_api.auth.models import Principal
from scheduling_api.db.repositories.users import UserRepo
from scheduling_api.errors import NotFoundError

router = APIRouter(prefix="/v2/me", tags=["me"])


class MeOutput(CamelModel):
    id: int
    email: str
    name: str | None
    time_zone: str
    role: str
    auth_method: str


@router.get("", response_model=ApiResponse[MeOutput])
async def get_me(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_read_session),
) -> ApiResponse[MeOutput]:
    user = await UserRepo(session).get(principal.user_id)
    if user is None:
        raise NotFoundError("User not found")
    return ApiResponse(
        data=MeOutput(
            id=user.id,
            email=user.email,
            name=user.name,
            time_zone=user.time_zone,
            role=user.role.value,
            auth_method=principal.auth_method.value,
        )
    )
