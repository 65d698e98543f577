"""
User Routes
"""

from fastapi import APIRouter

from cohort_lms.api.deps import CurrentUser
from cohort_lms.models.user import User
from cohort_lms.schemas.user import UserResponse


router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user profile",
)
async def get_me(current_user: CurrentUser) -> User:
    """
    Get the currently logged-in user's profile, including the cached
    point total and current phase/week.
    """
    return current_user
