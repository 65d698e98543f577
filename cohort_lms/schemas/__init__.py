"""
Cohort LMS - Schemas Module

Pydantic models for request/response validation.
"""

from cohort_lms.schemas.user import AdminUserCreate, UserCreate, UserResponse, UserStatusUpdate
from cohort_lms.schemas.token import AuthResponse, Token
from cohort_lms.schemas.certificate import CertificateResponse
from cohort_lms.schemas.curriculum import (
    ContentResponse,
    ContentUpsert,
    PhaseResponse,
    PhaseWithWeeks,
    QuizQuestion,
    WeekCreate,
    WeekResponse,
    WeekUpdate,
)
from cohort_lms.schemas.submission import (
    QuizSubmitRequest,
    ReviewRequest,
    SubmissionResponse,
    SubmissionUpdate,
)

__all__ = [
    # User
    "UserCreate",
    "AdminUserCreate",
    "UserResponse",
    "UserStatusUpdate",
    # Token
    "Token",
    "AuthResponse",
    # Certificate
    "CertificateResponse",
    # Curriculum
    "PhaseResponse",
    "PhaseWithWeeks",
    "WeekCreate",
    "WeekUpdate",
    "WeekResponse",
    "ContentUpsert",
    "ContentResponse",
    "QuizQuestion",
    # Submission
    "SubmissionResponse",
    "ReviewRequest",
    "SubmissionUpdate",
    "QuizSubmitRequest",
]
