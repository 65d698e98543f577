"""
Student Routes

Dashboard, week access, video tracking, assignment submissions, progress
summaries and the course certificate.
"""

import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, UploadFile, status
from fastapi.responses import FileResponse

from cohort_lms.api.deps import CurrentUser, DbSession
from cohort_lms.schemas.certificate import CertificateResponse
from cohort_lms.schemas.curriculum import ContentResponse
from cohort_lms.schemas.progress import (
    PhaseProgressResponse,
    PhaseStandingResponse,
    StudentDashboard,
    UnlockResult,
    VideoProgressResult,
    VideoProgressUpdate,
    WeekDetail,
)
from cohort_lms.schemas.submission import SubmissionResponse
from cohort_lms.services import certificate_service, gating_service, progress_service


router = APIRouter(prefix="/student", tags=["Student"])


@router.get(
    "/dashboard",
    response_model=StudentDashboard,
    summary="Student home screen",
)
async def get_dashboard(current_user: CurrentUser, db: DbSession) -> dict:
    """
    Phases with weeks and own progress, the current week, overall
    completion, recent submissions, certificate and point stats.
    """
    return await progress_service.student_dashboard(current_user, db)


@router.get(
    "/weeks/{week_id}",
    response_model=WeekDetail,
    summary="Get week details",
)
async def get_week(week_id: int, current_user: CurrentUser, db: DbSession) -> WeekDetail:
    """
    Week, content, own ledger row and own submissions.

    Quiz answer keys are removed for students.

    Raises:
        HTTPException: 404 if the week does not exist.
        HTTPException: 403 if the week is locked.
    """
    detail = await progress_service.week_detail(current_user, week_id, db)
    content = detail["content"]
    if content is not None:
        content = ContentResponse.model_validate(content)
        if not current_user.is_admin:
            content = content.for_student()
    return WeekDetail.model_validate({**detail, "content": content}, from_attributes=True)


@router.post(
    "/video-progress",
    response_model=VideoProgressResult,
    summary="Report video watch progress",
)
async def update_video_progress(
    data: VideoProgressUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    """
    Record watch progress. Video points are awarded once the video is
    finished or watched past the threshold, and the next week is unlocked
    when this completes the current one.
    """
    row, decision = await progress_service.record_video_progress(
        current_user, data.week_id, data.progress, data.completed, db,
    )
    return {
        "progress": row,
        "total_points": current_user.total_points,
        "unlock": gating_service.describe_decision(decision),
    }


@router.post(
    "/submissions",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit an assignment",
)
async def create_submission(
    current_user: CurrentUser,
    db: DbSession,
    week_id: Annotated[int, Form()],
    github_url: Annotated[Optional[str], Form()] = None,
    description: Annotated[Optional[str], Form()] = None,
    file: Annotated[Optional[UploadFile], File()] = None,
):
    """
    Submit a file, a repository link, or both.

    Raises:
        HTTPException: 400 if neither a file nor a link is provided.
        HTTPException: 403 if the week is locked.
        HTTPException: 413 if the file is too large.
    """
    return await progress_service.submit_assignment(
        current_user,
        week_id,
        db,
        upload=file,
        github_url=github_url or None,
        description=description,
    )


@router.delete(
    "/submissions/{submission_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Withdraw a pending submission",
)
async def delete_submission(
    submission_id: uuid.UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> None:
    """
    Raises:
        HTTPException: 404 if not found or not owned by the caller.
        HTTPException: 400 if it is a quiz attempt or has already been
            reviewed or approved.
    """
    await progress_service.delete_own_submission(current_user, submission_id, db)


@router.get(
    "/progress-summary",
    response_model=list[PhaseStandingResponse],
    summary="Per-phase standing",
)
async def get_progress_summary(current_user: CurrentUser, db: DbSession) -> list[dict]:
    return await progress_service.progress_summary(current_user, db)


@router.get(
    "/phases/{phase_id}/progress",
    response_model=PhaseProgressResponse,
    summary="Standing for one phase",
)
async def get_phase_progress(phase_id: int, current_user: CurrentUser, db: DbSession) -> dict:
    return await progress_service.phase_progress(current_user, phase_id, db)


@router.post(
    "/check-unlock",
    response_model=UnlockResult,
    summary="Re-evaluate week unlocks",
)
async def check_unlock(current_user: CurrentUser, db: DbSession) -> dict:
    """
    Unlock the next week if the current one is complete. At a phase
    boundary this only reports that admin approval is pending.
    """
    return await gating_service.check_unlock_for(current_user, db)


@router.post(
    "/certificate",
    response_model=CertificateResponse,
    summary="Claim the course certificate",
)
async def claim_certificate(current_user: CurrentUser, db: DbSession):
    """
    Issue the certificate once every phase meets its requirements.
    Claiming again returns the existing certificate.

    Raises:
        HTTPException: 400 with the missing requirements if not eligible.
    """
    return await certificate_service.claim_certificate(current_user, db)


@router.get(
    "/certificate",
    response_model=CertificateResponse,
    summary="Get own certificate",
)
async def get_certificate(current_user: CurrentUser, db: DbSession):
    return await certificate_service.get_own_certificate(current_user, db)


@router.get(
    "/certificate/download",
    summary="Download certificate PDF",
)
async def download_certificate(current_user: CurrentUser, db: DbSession) -> FileResponse:
    """
    Raises:
        HTTPException: 404 if the student has no certificate yet.
    """
    certificate = await certificate_service.get_own_certificate(current_user, db)
    path = certificate_service.ensure_certificate_file(certificate, current_user.full_name)
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=f"{certificate.certificate_id}.pdf",
    )

