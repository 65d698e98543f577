"""
Quiz Service Unit Tests

Tests for quiz submission guards and grading into the ledger.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tests.factories import make_row, make_student, make_week


def _week_with_quiz(questions):
    week = make_week(1, 1)
    week.content = SimpleNamespace(multiple_choice_questions=questions)
    return week


class TestSubmitQuiz:
    """Tests for submit_quiz."""

    @pytest.mark.asyncio
    async def test_week_without_questions(self, mock_async_session):
        """Verify a week with no quiz is a 400."""
        from fastapi import HTTPException

        from cohort_lms.services import quiz_service

        with patch("cohort_lms.services.ledger_service.get_week", new=AsyncMock(return_value=make_week(1, 1))):
            with pytest.raises(HTTPException) as exc_info:
                await quiz_service.submit_quiz(make_student(), 1, {}, mock_async_session)

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_locked_week(self, mock_async_session, sample_questions):
        """Verify a locked or never-opened week is a 403."""
        from fastapi import HTTPException

        from cohort_lms.services import quiz_service

        student = make_student()
        with patch("cohort_lms.services.ledger_service.get_week", new=AsyncMock(return_value=_week_with_quiz(sample_questions))), \
             patch("cohort_lms.services.ledger_service.lock_student", new=AsyncMock(return_value=student)), \
             patch("cohort_lms.services.ledger_service.lock_progress", new=AsyncMock(return_value=make_row(1, is_locked=True))):
            with pytest.raises(HTTPException) as exc_info:
                await quiz_service.submit_quiz(student, 1, {"0": 1}, mock_async_session)

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_second_attempt_conflicts(self, mock_async_session, sample_questions):
        """Verify only one quiz attempt per week is accepted."""
        from fastapi import HTTPException

        from cohort_lms.services import quiz_service

        student = make_student()
        with patch("cohort_lms.services.ledger_service.get_week", new=AsyncMock(return_value=_week_with_quiz(sample_questions))), \
             patch("cohort_lms.services.ledger_service.lock_student", new=AsyncMock(return_value=student)), \
             patch("cohort_lms.services.ledger_service.lock_progress", new=AsyncMock(return_value=make_row(1))), \
             patch.object(quiz_service, "find_quiz_submission", new=AsyncMock(return_value=MagicMock())):
            with pytest.raises(HTTPException) as exc_info:
                await quiz_service.submit_quiz(student, 1, {"0": 1}, mock_async_session)

        assert exc_info.value.status_code == 409
        mock_async_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_grades_into_ledger(self, mock_async_session, sample_questions):
        """Verify 3 of 5 correct records the raw score as quiz points."""
        from cohort_lms.services import quiz_service

        student = make_student()
        row = make_row(1, points=40, video_points=40, video_watched=True)
        answers = {"0": 1, "1": 1, "2": 1, "3": 0, "4": 2}
        with patch("cohort_lms.services.ledger_service.get_week", new=AsyncMock(return_value=_week_with_quiz(sample_questions))), \
             patch("cohort_lms.services.ledger_service.lock_student", new=AsyncMock(return_value=student)), \
             patch("cohort_lms.services.ledger_service.lock_progress", new=AsyncMock(return_value=row)), \
             patch("cohort_lms.services.ledger_service.refresh_completion", new=AsyncMock(return_value=True)), \
             patch("cohort_lms.services.ledger_service.resum_total_points", new=AsyncMock()), \
             patch("cohort_lms.services.gating_service.evaluate_unlocks", new=AsyncMock()) as evaluate, \
             patch.object(quiz_service, "find_quiz_submission", new=AsyncMock(return_value=None)), \
             patch.object(quiz_service, "manager") as manager:
            manager.broadcast_admins = AsyncMock(return_value=0)
            submission, grade = await quiz_service.submit_quiz(student, 1, answers, mock_async_session)

        assert grade.score == 3
        assert grade.total_questions == 5
        assert submission.score == 3
        assert row.quiz_submitted is True
        assert row.quiz_points == 3
        assert row.points == 43
        evaluate.assert_awaited_once_with(student.id, mock_async_session)
