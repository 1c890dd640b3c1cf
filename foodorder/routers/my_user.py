"""Current-user profile endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from foodorder.auth import get_current_user, verify_token
from foodorder.core.exceptions import Unauthorized
from foodorder.database import get_db
from foodorder.models import User
from foodorder.schemas import UserCreate, UserResponse, UserUpdate
from foodorder.services import users

router = APIRouter(prefix="/api/my/user", tags=["My User"])


@router.get("", response_model=UserResponse)
async def get_current_user_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await users.get_user(db, current_user.id)
    return UserResponse.model_validate(user)


@router.post(
    "",
    status_code=201,
    response_model=UserResponse,
    responses={200: {"description": "User already registered"}},
)
async def create_current_user(
    body: UserCreate,
    claims: dict[str, Any] = Depends(verify_token),
    db: AsyncSession = Depends(get_db),
):
    """Register the token subject; a second call is a no-op returning 200."""
    if body.auth0_id != claims["sub"]:
        raise Unauthorized()

    user, created = await users.create_user(db, body)
    if not created:
        return Response(status_code=200)

    return JSONResponse(
        status_code=201,
        content=UserResponse.model_validate(user).model_dump(mode="json", by_alias=True),
    )


@router.put("", response_model=UserResponse)
async def update_current_user(
    body: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await users.update_user(db, current_user.id, body)
    return UserResponse.model_validate(user)
