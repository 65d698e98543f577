"""
Authentication Routes

Handles student registration and password login.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_lms.core.database import get_db
from cohort_lms.core.security import create_access_token
from cohort_lms.models.enums import UserRole
from cohort_lms.schemas.token import AuthResponse
from cohort_lms.schemas.user import UserCreate, UserResponse
from cohort_lms.services import user_service


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a student account",
)
async def register(
    user_data: UserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AuthResponse:
    """
    Create a student account and return an access token.

    The first week of the course is unlocked for the new student.

    Raises:
        HTTPException: 409 if the email is already registered.
    """
    user = await user_service.create_user(
        user_data.email,
        user_data.password,
        user_data.full_name,
        db,
        role=UserRole.STUDENT,
    )
    return AuthResponse(
        access_token=create_access_token(subject=user.id),
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login and get access token",
)
async def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AuthResponse:
    """
    Authenticate with email and password.

    Note: Uses OAuth2PasswordRequestForm (``username`` carries the email)
    for compatibility with Swagger UI's built-in authorization feature.

    Raises:
        HTTPException: 401 if credentials are invalid.
        HTTPException: 403 if the account is deactivated.
    """
    user = await user_service.authenticate(form_data.username, form_data.password, db)
    return AuthResponse(
        access_token=create_access_token(subject=user.id),
        user=UserResponse.model_validate(user),
    )
