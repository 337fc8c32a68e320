"""
User Endpoints

The signed-in user's own profile.
"""
from fastapi import APIRouter, Depends

from survey_platform.models.user import User
from survey_platform.schemas.user import UserResponse
from survey_platform.api.deps import get_current_user

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    current_user: User = Depends(get_current_user)
):
    return current_user
