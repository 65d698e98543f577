"""
Curriculum Service

Admin maintenance of weeks and week content.
"""

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_lms.models.content import Content
from cohort_lms.models.phase import Phase
from cohort_lms.models.progress import Progress
from cohort_lms.models.submission import Submission
from cohort_lms.models.week import Week
from cohort_lms.schemas.curriculum import ContentUpsert, WeekCreate, WeekUpdate
from cohort_lms.services import ledger_service


logger = logging.getLogger(__name__)


async def get_phase(phase_id: int, db: AsyncSession) -> Phase:
    """
    Raises:
        HTTPException: 404 if the phase does not exist.
    """
    phase = await db.get(Phase, phase_id)
    if phase is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Phase not found",
        )
    return phase


async def _ensure_week_number_free(
    phase_id: int,
    week_number: int,
    db: AsyncSession,
    exclude_week_id: Optional[int] = None,
) -> None:
    query = select(Week.id).where(
        Week.phase_id == phase_id,
        Week.week_number == week_number,
    )
    if exclude_week_id is not None:
        query = query.where(Week.id != exclude_week_id)
    if await db.scalar(query) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Week {week_number} already exists in this phase",
        )


async def create_week(data: WeekCreate, db: AsyncSession) -> Week:
    """
    Add a week to a phase.

    Raises:
        HTTPException: 404 if the phase does not exist.
        HTTPException: 409 if the week number is taken within the phase.
    """
    await get_phase(data.phase_id, db)
    await _ensure_week_number_free(data.phase_id, data.week_number, db)

    week = Week(
        phase_id=data.phase_id,
        week_number=data.week_number,
        title=data.title,
        description=data.description,
        start_date=data.start_date,
        end_date=data.end_date,
        video_points=data.video_points,
        assignment_points=data.assignment_points,
        max_points=data.video_points + data.assignment_points,
        order=data.order if data.order is not None else data.week_number,
    )
    db.add(week)
    await db.flush()
    await db.refresh(week)
    logger.info("Created week %s in phase %s", week.week_number, week.phase_id)
    return week


async def update_week(week_id: int, data: WeekUpdate, db: AsyncSession) -> Week:
    """
    Partially update a week; ``max_points`` follows the component budgets.

    Raises:
        HTTPException: 404 if the week or target phase does not exist.
        HTTPException: 409 if the week number is taken within the phase.
    """
    week = await ledger_service.get_week(week_id, db)
    changes = data.model_dump(exclude_unset=True)

    phase_id = changes.get("phase_id", week.phase_id)
    week_number = changes.get("week_number", week.week_number)
    if "phase_id" in changes:
        await get_phase(phase_id, db)
    if (phase_id, week_number) != (week.phase_id, week.week_number):
        await _ensure_week_number_free(phase_id, week_number, db, exclude_week_id=week.id)

    for field, value in changes.items():
        setattr(week, field, value)
    week.max_points = week.video_points + week.assignment_points

    await db.flush()
    await db.refresh(week)
    return week


async def delete_week(week_id: int, db: AsyncSession) -> None:
    """
    Raises:
        HTTPException: 404 if the week does not exist.
        HTTPException: 409 if progress or submissions reference it.
    """
    week = await ledger_service.get_week(week_id, db)
    submissions = await db.scalar(select(func.count(Submission.id)).where(Submission.week_id == week.id))
    progress = await db.scalar(select(func.count(Progress.id)).where(Progress.week_id == week.id))
    if submissions or progress:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete a week that has student progress or submissions",
        )
    await db.delete(week)
    await db.flush()
    logger.info("Deleted week %s", week_id)


async def get_content(week_id: int, db: AsyncSession) -> Content:
    """
    Raises:
        HTTPException: 404 if the week has no content.
    """
    result = await db.execute(select(Content).where(Content.week_id == week_id))
    content = result.scalar_one_or_none()
    if content is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Content not found for this week",
        )
    return content


async def upsert_content(week_id: int, data: ContentUpsert, db: AsyncSession) -> Content:
    """Create the week's content or update the provided fields."""
    week = await ledger_service.get_week(week_id, db)
    result = await db.execute(select(Content).where(Content.week_id == week.id))
    content = result.scalar_one_or_none()

    changes = data.model_dump(exclude_unset=True)
    if content is None:
        content = Content(week_id=week.id, multiple_choice_questions=[], resources=[])
        db.add(content)

    for field, value in changes.items():
        setattr(content, field, [] if value is None and field in ("multiple_choice_questions", "resources") else value)

    await db.flush()
    await db.refresh(content)
    logger.info("Saved content for week %s", week.week_number)
    return content


async def delete_content(week_id: int, db: AsyncSession) -> None:
    content = await get_content(week_id, db)
    await db.delete(content)
    await db.flush()


async def course_structure(db: AsyncSession) -> list[Phase]:
    return await ledger_service.load_phases(db)
