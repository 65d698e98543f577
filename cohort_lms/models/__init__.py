"""
Cohort LMS - Models Module

This module exports all SQLAlchemy models for the application.
Import Base for Alembic migrations.
"""

from cohort_lms.core.database import Base

# Enums
from cohort_lms.models.enums import (
    UserRole,
    SubmissionKind,
    SubmissionStatus,
)

# Models
from cohort_lms.models.user import User
from cohort_lms.models.phase import Phase
from cohort_lms.models.week import Week
from cohort_lms.models.content import Content
from cohort_lms.models.progress import Progress
from cohort_lms.models.submission import Submission
from cohort_lms.models.certificate import Certificate

__all__ = [
    # Base
    "Base",
    # Enums
    "UserRole",
    "SubmissionKind",
    "SubmissionStatus",
    # Models
    "User",
    "Phase",
    "Week",
    "Content",
    "Progress",
    "Submission",
    "Certificate",
]
