"""
User Schemas

Pydantic models for user request/response validation.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from cohort_lms.models.enums import UserRole


class UserCreate(BaseModel):
    """Schema for self-registration (always a student)."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    full_name: str = Field(..., min_length=1, max_length=255, description="User's full name")


class AdminUserCreate(UserCreate):
    """Schema for accounts created by an admin."""

    role: UserRole = Field(default=UserRole.STUDENT, description="User role")


class UserResponse(BaseModel):
    """Schema for user response (excludes password)."""

    id: uuid.UUID
    email: str
    full_name: str
    role: UserRole
    current_phase: int
    current_week: int
    total_points: int
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class UserStatusUpdate(BaseModel):
    """Explicit active flag; omitted means flip the current value."""

    is_active: Optional[bool] = None
