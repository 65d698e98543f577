"""
Progress Ledger Service

Data access for progress rows. Every point mutation follows the same
protocol inside the request transaction:

1. lock the student row (``lock_student``),
2. lock or lazily create the progress row (``lock_progress``),
3. apply a Scoring Engine result and recompute ``completed``,
4. rewrite the student's cached total (``resum_total_points``).

Locks are always taken in that order (user, then progress) so concurrent
writers for the same student serialize instead of deadlocking.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_lms.models.phase import Phase
from cohort_lms.models.progress import Progress
from cohort_lms.models.submission import Submission
from cohort_lms.models.user import User
from cohort_lms.models.week import Week
from cohort_lms.services import scoring


logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============== Reads ==============

async def get_week(week_id: int, db: AsyncSession) -> Week:
    """
    Get a week with its phase and content.

    Raises:
        HTTPException: 404 if the week does not exist.
    """
    week = await db.get(Week, week_id)
    if week is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Week with ID {week_id} not found",
        )
    return week


async def load_phases(db: AsyncSession) -> list[Phase]:
    """All phases ordered by number, weeks eagerly loaded."""
    result = await db.execute(select(Phase).order_by(Phase.number))
    return list(result.scalars().all())


async def get_progress(user_id: uuid.UUID, week_id: int, db: AsyncSession) -> Optional[Progress]:
    result = await db.execute(
        select(Progress).where(
            Progress.user_id == user_id,
            Progress.week_id == week_id,
        )
    )
    return result.scalar_one_or_none()


async def progress_by_week(user_id: uuid.UUID, db: AsyncSession) -> dict[int, Progress]:
    """Map of week id to ledger row for a student."""
    result = await db.execute(select(Progress).where(Progress.user_id == user_id))
    return {row.week_id: row for row in result.scalars().all()}


# ============== Locks ==============

async def lock_student(user_id: uuid.UUID, db: AsyncSession) -> User:
    """
    Lock a student row for the rest of the transaction.

    Raises:
        HTTPException: 404 if the user does not exist.
    """
    await db.flush()
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


async def lock_progress(
    user_id: uuid.UUID,
    week_id: int,
    db: AsyncSession,
    create: bool = True,
) -> Optional[Progress]:
    """
    Lock the (student, week) ledger row, creating it locked if missing.

    Creation uses ``INSERT ... ON CONFLICT DO NOTHING`` so two requests
    racing to create the same row both end up locking the single winner.
    """
    await db.flush()
    if create:
        await db.execute(
            pg_insert(Progress)
            .values(user_id=user_id, week_id=week_id, is_locked=True)
            .on_conflict_do_nothing(index_elements=["user_id", "week_id"])
        )

    result = await db.execute(
        select(Progress)
        .where(
            Progress.user_id == user_id,
            Progress.week_id == week_id,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


# ============== Mutations ==============

async def unlock_week(user_id: uuid.UUID, week: Week, db: AsyncSession) -> Progress:
    """Open a week for a student. Already-open rows are left untouched."""
    row = await lock_progress(user_id, week.id, db)
    if row.is_locked:
        row.is_locked = False
        row.unlocked_at = utcnow()
        logger.info("Unlocked week %s for user %s", week.week_number, user_id)
    return row


async def graded_submissions(user_id: uuid.UUID, week_id: int, db: AsyncSession) -> list[Submission]:
    await db.flush()
    result = await db.execute(
        select(Submission).where(
            Submission.user_id == user_id,
            Submission.week_id == week_id,
            Submission.score.is_not(None),
        )
    )
    return list(result.scalars().all())


async def refresh_completion(row: Progress, db: AsyncSession) -> bool:
    """
    Recompute ``completed`` from the video flag and remaining graded work.

    Returns:
        The new completion state.
    """
    submissions = await graded_submissions(row.user_id, row.week_id, db)
    completed = scoring.evaluate_completion(row.video_watched, submissions)
    if completed and not row.completed:
        row.completed_at = utcnow()
    elif not completed:
        row.completed_at = None
    row.completed = completed
    return completed


async def resum_total_points(user: User, db: AsyncSession) -> int:
    """Rewrite the cached total from SUM(progress.points)."""
    await db.flush()
    total = await db.scalar(
        select(func.coalesce(func.sum(Progress.points), 0)).where(Progress.user_id == user.id)
    )
    user.total_points = int(total or 0)
    return user.total_points
