"""
Progress Service

Student-side actions on the ledger: video tracking, assignment
submission, withdrawing a submission, and progress summaries.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_lms.core.database import on_commit
from cohort_lms.models.enums import SubmissionKind, SubmissionStatus
from cohort_lms.models.phase import Phase
from cohort_lms.models.progress import Progress
from cohort_lms.models.submission import Submission
from cohort_lms.models.user import User
from cohort_lms.models.week import Week
from cohort_lms.services import (
    certificate_service,
    gating,
    gating_service,
    ledger_service,
    review_service,
    scoring,
    storage_service,
)
from cohort_lms.services.gating import UnlockDecision
from cohort_lms.services.notification_service import NEW_SUBMISSION, manager


logger = logging.getLogger(__name__)


LOCKED_WEEK_DETAIL = "Week is locked. Complete previous weeks first."


def _as_aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_on_time(deadline: Optional[datetime], submitted_at: datetime) -> bool:
    """No deadline, or submitted no later than the deadline."""
    deadline = _as_aware(deadline)
    return deadline is None or _as_aware(submitted_at) <= deadline


async def get_accessible_week(user: User, week_id: int, db: AsyncSession) -> Tuple[Week, Optional[Progress]]:
    """
    Fetch a week and the caller's ledger row, enforcing the lock for students.

    Raises:
        HTTPException: 404 if the week does not exist.
        HTTPException: 403 if the week is locked for a student.
    """
    week = await ledger_service.get_week(week_id, db)
    row = await ledger_service.get_progress(user.id, week.id, db)
    if not user.is_admin and not gating.is_unlocked(row):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=LOCKED_WEEK_DETAIL,
        )
    return week, row


async def _lock_open_row(student: User, week: Week, db: AsyncSession) -> Progress:
    row = await ledger_service.lock_progress(student.id, week.id, db, create=False)
    if not gating.is_unlocked(row):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=LOCKED_WEEK_DETAIL,
        )
    return row


async def record_video_progress(
    user: User,
    week_id: int,
    reported: float,
    completed: bool,
    db: AsyncSession,
) -> Tuple[Progress, UnlockDecision]:
    """
    Record a video watch report.

    The video budget is awarded once, when the report first reaches the
    completion threshold or is flagged complete. Lower later reports never
    revoke it.

    Args:
        user: Reporting student.
        week_id: Week the video belongs to.
        reported: Watched percentage, clamped into 0..100.
        completed: Explicit completion flag from the player.
        db: Database session.

    Returns:
        The updated ledger row and the resulting unlock decision.
    """
    week = await ledger_service.get_week(week_id, db)
    student = await ledger_service.lock_student(user.id, db)
    row = await _lock_open_row(student, week, db)

    watched = scoring.bound_percentage(reported)
    row.video_progress = max(row.video_progress or 0, scoring.clamp_percentage(watched))

    if scoring.video_award_due(row.video_watched, watched, completed):
        row.video_watched = True
        row.video_watched_at = ledger_service.utcnow()
        delta = scoring.apply_component(row, scoring.Component.VIDEO, scoring.score_video(week.video_points))
        logger.info("Video awarded for week %s to user %s (+%s)", week.week_number, student.id, delta)

    await ledger_service.refresh_completion(row, db)
    await ledger_service.resum_total_points(student, db)
    decision = await gating_service.evaluate_unlocks(student.id, db)
    return row, decision


async def submit_assignment(
    user: User,
    week_id: int,
    db: AsyncSession,
    upload: Optional[UploadFile] = None,
    github_url: Optional[str] = None,
    description: Optional[str] = None,
) -> Submission:
    """
    Submit an assignment for review.

    The on-time flag is fixed now against the content deadline and later
    decides the review bonus.

    Raises:
        HTTPException: 400 if neither a file nor a link is provided.
        HTTPException: 403 if the week is locked.
        HTTPException: 404 if the week does not exist.
    """
    week = await ledger_service.get_week(week_id, db)
    if upload is None and not github_url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide a file or a GitHub URL",
        )

    student = await ledger_service.lock_student(user.id, db)
    row = await _lock_open_row(student, week, db)

    submitted_at = ledger_service.utcnow()
    deadline = week.content.assignment_deadline if week.content else None

    stored = None
    if upload is not None:
        stored = await storage_service.save_upload(upload, subdir=str(student.id))

    submission = Submission(
        user_id=student.id,
        week_id=week.id,
        kind=SubmissionKind.ASSIGNMENT,
        file_path=stored.path if stored else None,
        file_name=stored.original_name if stored else None,
        file_size=stored.size if stored else None,
        github_url=github_url,
        description=description,
        is_on_time=is_on_time(deadline, submitted_at),
        status=SubmissionStatus.SUBMITTED,
        submitted_at=submitted_at,
    )
    db.add(submission)

    row.assignment_submitted = True
    row.assignment_submitted_at = submitted_at
    await db.flush()
    await db.refresh(submission)

    logger.info("Assignment submitted for week %s by user %s", week.week_number, student.id)
    on_commit(
        db,
        manager.broadcast_admins,
        NEW_SUBMISSION,
        {
            "submission_id": str(submission.id),
            "kind": submission.kind.value,
            "student_id": str(student.id),
            "student_name": student.full_name,
            "week_number": week.week_number,
        },
    )
    return submission


async def delete_own_submission(user: User, submission_id: uuid.UUID, db: AsyncSession) -> None:
    """
    Withdraw one of the caller's submissions.

    Raises:
        HTTPException: 404 if not found or owned by someone else.
        HTTPException: 400 if it is a quiz attempt, or was already
            reviewed or approved.
    """
    result = await db.execute(
        select(Submission).where(
            Submission.id == submission_id,
            Submission.user_id == user.id,
        )
    )
    submission = result.scalar_one_or_none()
    if submission is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Submission not found or you do not have permission to delete it",
        )
    if submission.kind == SubmissionKind.QUIZ:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Quiz attempts cannot be withdrawn",
        )
    if submission.status in (SubmissionStatus.REVIEWED, SubmissionStatus.APPROVED):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete submission that has been reviewed or approved",
        )
    await review_service.discard_submission(submission, db)


# ============== Summaries ==============

def standing_summary(phase: Phase, standing: gating.PhaseStanding) -> dict[str, Any]:
    return {
        "phase": {
            "id": phase.id,
            "number": phase.number,
            "title": phase.title,
            "color": phase.color,
        },
        "total_weeks": standing.total_weeks,
        "completed_weeks": standing.completed_weeks,
        "total_possible_points": standing.possible_points,
        "earned_points": standing.earned_points,
        "progress_percentage": standing.progress_percentage,
        "required_percentage": standing.required_percentage,
        "is_completed": standing.requirements_met,
    }


async def progress_summary(user: User, db: AsyncSession) -> list[dict[str, Any]]:
    """Per-phase standing for a student."""
    phases = await ledger_service.load_phases(db)
    rows = await ledger_service.progress_by_week(user.id, db)
    return [
        standing_summary(phase, gating.phase_standing(phase, rows))
        for phase in gating.sorted_phases(phases)
    ]


async def phase_progress(user: User, phase_id: int, db: AsyncSession) -> dict[str, Any]:
    """
    Standing for one phase with week-level rows.

    Raises:
        HTTPException: 404 if the phase does not exist.
    """
    phase = await db.get(Phase, phase_id)
    if phase is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Phase not found",
        )
    rows = await ledger_service.progress_by_week(user.id, db)
    summary = standing_summary(phase, gating.phase_standing(phase, rows))
    summary["weeks"] = [
        {
            "week_id": week.id,
            "week_number": week.week_number,
            "title": week.title,
            "max_points": week.max_points,
            "points": rows[week.id].points if week.id in rows else 0,
            "completed": bool(rows.get(week.id) and rows[week.id].completed),
            "is_locked": not gating.is_unlocked(rows.get(week.id)),
        }
        for week in gating.sorted_weeks(phase)
    ]
    return summary


async def recent_submissions(user_id: uuid.UUID, db: AsyncSession, limit: int = 5) -> list[Submission]:
    result = await db.execute(
        select(Submission)
        .where(Submission.user_id == user_id)
        .order_by(Submission.submitted_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def student_dashboard(user: User, db: AsyncSession) -> dict[str, Any]:
    """
    Everything the student home screen needs in one payload.

    Returns:
        dict with phases (weeks + own ledger rows), the current week,
        overall progress, recent submissions, certificate and stats.
    """
    phases = await ledger_service.load_phases(db)
    rows = await ledger_service.progress_by_week(user.id, db)
    order = gating.course_order(phases)

    total_weeks = len(order)
    completed_weeks = sum(1 for row in rows.values() if row.completed)
    current_week = next((week for _, week in order if week.week_number == user.current_week), None)

    return {
        "user": user,
        "phases": [
            {
                "phase": phase,
                "weeks": [
                    {"week": week, "progress": rows.get(week.id)}
                    for week in gating.sorted_weeks(phase)
                ],
            }
            for phase in gating.sorted_phases(phases)
        ],
        "current_week": current_week,
        "current_week_progress": rows.get(current_week.id) if current_week else None,
        "overall_progress": scoring.round_half_up(scoring.safe_ratio(completed_weeks, total_weeks) * 100),
        "completed_weeks": completed_weeks,
        "total_weeks": total_weeks,
        "recent_submissions": await recent_submissions(user.id, db),
        "certificate": await certificate_service.get_certificate_for_user(user.id, db),
        "stats": {
            "total_points": user.total_points,
            "current_phase": user.current_phase,
            "current_week": user.current_week,
        },
    }


async def week_detail(user: User, week_id: int, db: AsyncSession) -> dict[str, Any]:
    """Week, content, own ledger row and own submissions."""
    week, row = await get_accessible_week(user, week_id, db)
    result = await db.execute(
        select(Submission)
        .where(
            Submission.user_id == user.id,
            Submission.week_id == week.id,
        )
        .order_by(Submission.submitted_at.desc())
    )
    submissions = list(result.scalars().all())
    return {
        "week": week,
        "content": week.content,
        "progress": row,
        "submissions": submissions,
        "quiz_taken": any(s.kind == SubmissionKind.QUIZ for s in submissions),
    }


async def completed_week_count(user_id: uuid.UUID, db: AsyncSession) -> int:
    count = await db.scalar(
        select(func.count(Progress.id)).where(
            Progress.user_id == user_id,
            Progress.completed.is_(True),
        )
    )
    return int(count or 0)
