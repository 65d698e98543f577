"""
Curriculum Routes

Admin maintenance of weeks and their content.
"""

from fastapi import APIRouter, status

from cohort_lms.api.deps import AdminUser, DbSession
from cohort_lms.schemas.curriculum import (
    ContentResponse,
    ContentUpsert,
    WeekCreate,
    WeekResponse,
    WeekUpdate,
)
from cohort_lms.services import curriculum_service


router = APIRouter(prefix="/admin/weeks", tags=["Curriculum"])


@router.post(
    "",
    response_model=WeekResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a week",
)
async def create_week(data: WeekCreate, admin: AdminUser, db: DbSession):
    """
    ``max_points`` is always ``video_points + assignment_points``.

    Raises:
        HTTPException: 404 if the phase does not exist.
        HTTPException: 409 if the week number is taken in the phase.
    """
    return await curriculum_service.create_week(data, db)


@router.put(
    "/{week_id}",
    response_model=WeekResponse,
    summary="Update a week",
)
async def update_week(week_id: int, data: WeekUpdate, admin: AdminUser, db: DbSession):
    return await curriculum_service.update_week(week_id, data, db)


@router.delete(
    "/{week_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a week",
)
async def delete_week(week_id: int, admin: AdminUser, db: DbSession) -> None:
    """
    Raises:
        HTTPException: 409 if students have progress or submissions on it.
    """
    await curriculum_service.delete_week(week_id, db)


@router.put(
    "/{week_id}/content",
    response_model=ContentResponse,
    summary="Create or update week content",
)
async def upsert_content(week_id: int, data: ContentUpsert, admin: AdminUser, db: DbSession):
    """Only the provided fields change; quiz questions are validated."""
    return await curriculum_service.upsert_content(week_id, data, db)


@router.get(
    "/{week_id}/content",
    response_model=ContentResponse,
    summary="Get week content with answer keys",
)
async def get_content(week_id: int, admin: AdminUser, db: DbSession):
    return await curriculum_service.get_content(week_id, db)


@router.delete(
    "/{week_id}/content",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete week content",
)
async def delete_content(week_id: int, admin: AdminUser, db: DbSession) -> None:
    await curriculum_service.delete_content(week_id, db)
