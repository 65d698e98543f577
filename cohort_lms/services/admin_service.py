"""
Admin Service

Read models for the admin console: dashboard counters, student listings
and per-student detail.
"""

import math
import uuid
from typing import Any, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_lms.models.certificate import Certificate
from cohort_lms.models.enums import SubmissionStatus, UserRole
from cohort_lms.models.progress import Progress
from cohort_lms.models.submission import Submission
from cohort_lms.models.user import User
from cohort_lms.models.week import Week
from cohort_lms.schemas.user import UserResponse
from cohort_lms.services import certificate_service, gating, ledger_service, progress_service, user_service
from cohort_lms.services.scoring import round_half_up, safe_ratio


def page_count(total: int, limit: int) -> int:
    return max(1, math.ceil(total / limit)) if limit else 1


async def admin_dashboard(db: AsyncSession) -> dict[str, Any]:
    """Counters plus average phase completion across students."""
    total_students = await db.scalar(select(func.count(User.id)).where(User.role == UserRole.STUDENT))
    active_students = await db.scalar(
        select(func.count(User.id)).where(User.role == UserRole.STUDENT, User.is_active.is_(True))
    )
    pending = await db.scalar(
        select(func.count(Submission.id)).where(Submission.status == SubmissionStatus.SUBMITTED)
    )
    certificates = await db.scalar(select(func.count(Certificate.id)))
    total_weeks = await db.scalar(select(func.count(Week.id)))

    phases = await ledger_service.load_phases(db)
    phase_completion = []
    for phase in gating.sorted_phases(phases):
        week_ids = [w.id for w in phase.weeks]
        completed = 0
        if week_ids:
            completed = await db.scalar(
                select(func.count(Progress.id)).where(
                    Progress.week_id.in_(week_ids),
                    Progress.completed.is_(True),
                )
            )
        possible = len(week_ids) * int(total_students or 0)
        phase_completion.append({
            "phase_number": phase.number,
            "title": phase.title,
            "completed_weeks": int(completed or 0),
            "average_completion": round_half_up(safe_ratio(completed or 0, possible) * 100),
        })

    recent = await db.execute(select(Submission).order_by(Submission.submitted_at.desc()).limit(10))

    return {
        "total_students": int(total_students or 0),
        "active_students": int(active_students or 0),
        "pending_submissions": int(pending or 0),
        "certificates_issued": int(certificates or 0),
        "total_weeks": int(total_weeks or 0),
        "phase_completion": phase_completion,
        "recent_submissions": list(recent.scalars().all()),
    }


async def list_students(
    db: AsyncSession,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> dict[str, Any]:
    """Paginated students, optionally filtered by name or email."""
    conditions = [User.role == UserRole.STUDENT]
    if search:
        pattern = f"%{search.strip()}%"
        conditions.append(or_(User.full_name.ilike(pattern), User.email.ilike(pattern)))

    total = int(await db.scalar(select(func.count(User.id)).where(*conditions)) or 0)
    total_weeks = int(await db.scalar(select(func.count(Week.id))) or 0)

    result = await db.execute(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    students = []
    for user in result.scalars().all():
        completed = await progress_service.completed_week_count(user.id, db)
        students.append({
            **UserResponse.model_validate(user).model_dump(),
            "completed_weeks": completed,
            "progress_percentage": round_half_up(safe_ratio(completed, total_weeks) * 100),
        })

    return {
        "students": students,
        "total": total,
        "page": page,
        "pages": page_count(total, limit),
    }


async def student_detail(user_id: uuid.UUID, db: AsyncSession) -> dict[str, Any]:
    """Ledger rows, submissions, certificate and standings for a student."""
    user = await user_service.get_user(user_id, db)
    rows = await ledger_service.progress_by_week(user.id, db)
    submissions = await db.execute(
        select(Submission)
        .where(Submission.user_id == user.id)
        .order_by(Submission.submitted_at.desc())
    )
    return {
        "user": user,
        "progress": sorted(rows.values(), key=lambda r: r.week.week_number if r.week else 0),
        "submissions": list(submissions.scalars().all()),
        "certificate": await certificate_service.get_certificate_for_user(user.id, db),
        "standings": await progress_service.progress_summary(user, db),
    }


def submission_row(submission: Submission) -> dict[str, Any]:
    """Flatten a submission with its student and week for listings."""
    return {
        **{
            column: getattr(submission, column)
            for column in (
                "id", "user_id", "week_id", "kind", "file_name", "file_size", "github_url",
                "description", "is_on_time", "total_questions", "score", "feedback",
                "status", "submitted_at", "reviewed_at", "reviewed_by",
            )
        },
        "student_name": submission.user.full_name if submission.user else None,
        "student_email": submission.user.email if submission.user else None,
        "week_number": submission.week.week_number if submission.week else None,
        "week_title": submission.week.title if submission.week else None,
    }
