"""
Curriculum Service Unit Tests

Tests for admin week management.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from tests.factories import make_week


class TestCreateWeek:
    """Tests for create_week."""

    @pytest.mark.asyncio
    async def test_max_points_is_sum_of_budgets(self, mock_async_session):
        """Verify a new week's max_points follows its component budgets."""
        from cohort_lms.schemas.curriculum import WeekCreate
        from cohort_lms.services import curriculum_service

        mock_async_session.get.return_value = SimpleNamespace(id=1)
        mock_async_session.scalar.return_value = None
        data = WeekCreate(title="Testing", phase_id=1, week_number=5, video_points=30, assignment_points=90)

        week = await curriculum_service.create_week(data, mock_async_session)

        assert week.max_points == 120
        assert week.order == 5
        mock_async_session.add.assert_called_once_with(week)

    @pytest.mark.asyncio
    async def test_duplicate_week_number_is_409(self, mock_async_session):
        """Verify a week number can be used once per phase."""
        from fastapi import HTTPException

        from cohort_lms.schemas.curriculum import WeekCreate
        from cohort_lms.services import curriculum_service

        mock_async_session.get.return_value = SimpleNamespace(id=1)
        mock_async_session.scalar.return_value = 7
        data = WeekCreate(title="Again", phase_id=1, week_number=1)

        with pytest.raises(HTTPException) as exc_info:
            await curriculum_service.create_week(data, mock_async_session)

        assert exc_info.value.status_code == 409
        mock_async_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_phase_is_404(self, mock_async_session):
        """Verify weeks need an existing phase."""
        from fastapi import HTTPException

        from cohort_lms.schemas.curriculum import WeekCreate
        from cohort_lms.services import curriculum_service

        mock_async_session.get.return_value = None

        with pytest.raises(HTTPException) as exc_info:
            await curriculum_service.create_week(WeekCreate(title="X", phase_id=9, week_number=1), mock_async_session)

        assert exc_info.value.status_code == 404


class TestUpdateWeek:
    """Tests for update_week."""

    @pytest.mark.asyncio
    async def test_budget_change_recomputes_max_points(self, mock_async_session):
        """Verify editing one budget keeps max_points in sync."""
        from cohort_lms.schemas.curriculum import WeekUpdate
        from cohort_lms.services import curriculum_service

        week = make_week(1, 1)
        with patch("cohort_lms.services.ledger_service.get_week", new=AsyncMock(return_value=week)):
            updated = await curriculum_service.update_week(1, WeekUpdate(assignment_points=80), mock_async_session)

        assert updated.assignment_points == 80
        assert updated.video_points == 40
        assert updated.max_points == 120
        mock_async_session.scalar.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_renumber_onto_taken_number_is_409(self, mock_async_session):
        """Verify moving a week onto an existing number is refused."""
        from fastapi import HTTPException

        from cohort_lms.schemas.curriculum import WeekUpdate
        from cohort_lms.services import curriculum_service

        week = make_week(1, 1)
        mock_async_session.scalar.return_value = 2
        with patch("cohort_lms.services.ledger_service.get_week", new=AsyncMock(return_value=week)):
            with pytest.raises(HTTPException) as exc_info:
                await curriculum_service.update_week(1, WeekUpdate(week_number=2), mock_async_session)

        assert exc_info.value.status_code == 409
        assert week.week_number == 1


class TestDeleteWeek:
    """Tests for delete_week."""

    @pytest.mark.asyncio
    async def test_referenced_week_is_409(self, mock_async_session):
        """Verify weeks with ledger rows cannot be deleted."""
        from fastapi import HTTPException

        from cohort_lms.services import curriculum_service

        mock_async_session.scalar.side_effect = [0, 3]
        with patch("cohort_lms.services.ledger_service.get_week", new=AsyncMock(return_value=make_week(1, 1))):
            with pytest.raises(HTTPException) as exc_info:
                await curriculum_service.delete_week(1, mock_async_session)

        assert exc_info.value.status_code == 409
        mock_async_session.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unreferenced_week_is_deleted(self, mock_async_session):
        """Verify an unused week is removed."""
        from cohort_lms.services import curriculum_service

        week = make_week(1, 1)
        mock_async_session.scalar.side_effect = [0, 0]
        with patch("cohort_lms.services.ledger_service.get_week", new=AsyncMock(return_value=week)):
            await curriculum_service.delete_week(1, mock_async_session)

        mock_async_session.delete.assert_awaited_once_with(week)
