"""
Database Enums

Python Enums that map to PostgreSQL ENUM types.
"""

import enum


class UserRole(str, enum.Enum):
    """User role enumeration."""
    STUDENT = "STUDENT"
    ADMIN = "ADMIN"


class SubmissionKind(str, enum.Enum):
    """Which graded component a submission feeds."""
    ASSIGNMENT = "ASSIGNMENT"
    QUIZ = "QUIZ"


class SubmissionStatus(str, enum.Enum):
    """Submission review status enumeration."""
    SUBMITTED = "SUBMITTED"
    REVIEWED = "REVIEWED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
