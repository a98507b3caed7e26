from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from digital_library.api.dependencies import require_user
from digital_library.database import get_db
from digital_library.schemas.base import StandardResponse
from digital_library.schemas.context import UserContext
from digital_library.schemas.users import (PasswordChange, UserResponse,
                                           UserUpdate)
from digital_library.services.user_service import user_service

router = APIRouter(tags=["Users"], prefix="/users")


@router.get("/profile", response_model=UserResponse, summary="Get my profile")
async def get_profile(
    user: UserContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return UserResponse.model_validate(await user_service.get_user(user.user_id, db))


@router.put("/profile", response_model=UserResponse, summary="Update my profile")
async def update_profile(
    update: UserUpdate,
    user: UserContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await user_service.update_profile(user.user_id, update, db)
    return UserResponse.model_validate(updated)


@router.put("/password", response_model=StandardResponse, summary="Change my password")
async def change_password(
    change: PasswordChange,
    user: UserContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    await user_service.change_password(user.user_id, change, db)
    return StandardResponse(success=True, message="Password changed")
