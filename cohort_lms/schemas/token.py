"""
Token Schemas

Pydantic models for JWT token handling.
"""

from pydantic import BaseModel

from cohort_lms.schemas.user import UserResponse


class Token(BaseModel):
    """Schema for token response."""

    access_token: str
    token_type: str = "bearer"


class AuthResponse(Token):
    """Token plus the authenticated profile."""

    user: UserResponse
