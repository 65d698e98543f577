"""
Admin Routes

Dashboard, student management, submission review and phase approval.
Every route requires an admin token.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Query, status

from cohort_lms.api.deps import AdminUser, DbSession
from cohort_lms.models.enums import SubmissionKind, SubmissionStatus
from cohort_lms.schemas.curriculum import PhaseWithWeeks
from cohort_lms.schemas.progress import (
    AdminDashboard,
    PhaseApprovalResult,
    StudentDetail,
    StudentList,
    UnlockResult,
)
from cohort_lms.schemas.submission import (
    AdminSubmissionResponse,
    ReviewRequest,
    SubmissionList,
    SubmissionUpdate,
)
from cohort_lms.schemas.user import AdminUserCreate, UserResponse, UserStatusUpdate
from cohort_lms.services import (
    admin_service,
    curriculum_service,
    gating_service,
    review_service,
    user_service,
)


router = APIRouter(prefix="/admin", tags=["Admin"])


# ============== Overview ==============

@router.get(
    "/dashboard",
    response_model=AdminDashboard,
    summary="Admin dashboard counters",
)
async def get_dashboard(admin: AdminUser, db: DbSession) -> dict:
    return await admin_service.admin_dashboard(db)


@router.get(
    "/course-structure",
    response_model=list[PhaseWithWeeks],
    summary="Phases with weeks and content",
)
async def get_course_structure(admin: AdminUser, db: DbSession):
    return await curriculum_service.course_structure(db)


# ============== Students ==============

@router.get(
    "/students",
    response_model=StudentList,
    summary="List students",
)
async def list_students(
    admin: AdminUser,
    db: DbSession,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> dict:
    """Paginated students; ``search`` matches name or email, case-insensitive."""
    return await admin_service.list_students(db, search=search, page=page, limit=limit)


@router.get(
    "/students/{student_id}",
    response_model=StudentDetail,
    summary="Student detail",
)
async def get_student(student_id: uuid.UUID, admin: AdminUser, db: DbSession) -> dict:
    return await admin_service.student_detail(student_id, db)


@router.post(
    "/students/{student_id}/approve-phase",
    response_model=PhaseApprovalResult,
    summary="Approve a student's current phase",
)
async def approve_phase(student_id: uuid.UUID, admin: AdminUser, db: DbSession) -> dict:
    """
    Advance the student to the next phase and unlock its first week, or
    issue the certificate after the final phase.

    Raises:
        HTTPException: 400 with the missing requirements if the phase
            threshold is not met.
    """
    return await gating_service.approve_phase(student_id, db)


@router.post(
    "/students/{student_id}/check-unlock",
    response_model=UnlockResult,
    summary="Re-evaluate unlocks for a student",
)
async def check_student_unlock(student_id: uuid.UUID, admin: AdminUser, db: DbSession) -> dict:
    student = await user_service.get_user(student_id, db)
    return await gating_service.check_unlock_for(student, db)


# ============== Submissions ==============

@router.get(
    "/submissions",
    response_model=SubmissionList,
    summary="List submissions",
)
async def list_submissions(
    admin: AdminUser,
    db: DbSession,
    review_status: Optional[SubmissionStatus] = Query(None, alias="status"),
    kind: Optional[SubmissionKind] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> dict:
    """Assignment and quiz submissions, newest first."""
    items, total = await review_service.list_submissions(
        db, review_status=review_status, kind=kind, page=page, limit=limit,
    )
    return {
        "submissions": [admin_service.submission_row(s) for s in items],
        "total": total,
        "page": page,
        "pages": admin_service.page_count(total, limit),
    }


@router.put(
    "/submissions/{submission_id}/review",
    response_model=AdminSubmissionResponse,
    summary="Review a submission",
)
async def review_submission(
    submission_id: uuid.UUID,
    data: ReviewRequest,
    admin: AdminUser,
    db: DbSession,
) -> dict:
    """
    Grade a submission. Assignments take a 0-100 score (plus the on-time
    bonus); quizzes take the number of correct answers.

    Raises:
        HTTPException: 404 if the submission does not exist.
    """
    submission = await review_service.review_submission(
        submission_id,
        data.score,
        admin,
        db,
        feedback=data.feedback,
        review_status=data.status,
    )
    return admin_service.submission_row(submission)


@router.put(
    "/submissions/{submission_id}",
    response_model=AdminSubmissionResponse,
    summary="Update a submission review",
)
async def update_submission(
    submission_id: uuid.UUID,
    data: SubmissionUpdate,
    admin: AdminUser,
    db: DbSession,
) -> dict:
    submission = await review_service.update_submission(
        submission_id,
        admin,
        db,
        score=data.score,
        feedback=data.feedback,
        review_status=data.status,
    )
    return admin_service.submission_row(submission)


@router.delete(
    "/submissions/{submission_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a submission",
)
async def delete_submission(submission_id: uuid.UUID, admin: AdminUser, db: DbSession) -> None:
    """Remove the submission and take back the points it earned."""
    await review_service.delete_submission(submission_id, db)


# ============== Users ==============

@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
async def create_user(data: AdminUserCreate, admin: AdminUser, db: DbSession):
    """
    Raises:
        HTTPException: 409 if the email is already registered.
    """
    return await user_service.create_user(
        data.email, data.password, data.full_name, db, role=data.role,
    )


@router.patch(
    "/users/{user_id}/toggle-status",
    response_model=UserResponse,
    summary="Activate or deactivate a student",
)
async def toggle_user_status(
    user_id: uuid.UUID,
    admin: AdminUser,
    db: DbSession,
    data: Optional[UserStatusUpdate] = None,
):
    """
    Raises:
        HTTPException: 403 for admin accounts.
    """
    return await user_service.set_active(user_id, db, is_active=data.is_active if data else None)


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a student",
)
async def delete_user(user_id: uuid.UUID, admin: AdminUser, db: DbSession) -> None:
    """
    Raises:
        HTTPException: 403 for admin accounts.
        HTTPException: 409 if the user has submissions or a certificate.
    """
    await user_service.delete_user(user_id, db)
