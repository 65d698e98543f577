"""
Cohort LMS - Services Module

Business logic layer.
"""

from cohort_lms.services import scoring
from cohort_lms.services import gating
from cohort_lms.services import ledger_service
from cohort_lms.services import notification_service
from cohort_lms.services import email_service
from cohort_lms.services import storage_service
from cohort_lms.services import certificate_service
from cohort_lms.services import gating_service
from cohort_lms.services import review_service
from cohort_lms.services import quiz_service
from cohort_lms.services import progress_service
from cohort_lms.services import curriculum_service
from cohort_lms.services import user_service
from cohort_lms.services import admin_service

__all__ = [
    "scoring",
    "gating",
    "ledger_service",
    "notification_service",
    "email_service",
    "storage_service",
    "certificate_service",
    "gating_service",
    "review_service",
    "quiz_service",
    "progress_service",
    "curriculum_service",
    "user_service",
    "admin_service",
]
