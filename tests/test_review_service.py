"""
Review Service Unit Tests

Tests for admin grading and submission removal with the ledger helpers
patched out.
"""

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tests.factories import make_row, make_student, make_week


def _submission(kind=None, score=None, status=None, is_on_time=True, total_questions=None, week_id=1):
    from cohort_lms.models.enums import SubmissionKind, SubmissionStatus

    return SimpleNamespace(
        id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        week_id=week_id,
        kind=kind or SubmissionKind.ASSIGNMENT,
        score=score,
        status=status or SubmissionStatus.SUBMITTED,
        is_on_time=is_on_time,
        total_questions=total_questions,
        feedback=None,
        file_path=None,
        reviewed_at=None,
        reviewed_by=None,
    )


@pytest.fixture
def ledger_patches():
    """Patch ledger access so grading runs against in-memory rows."""
    with patch("cohort_lms.services.ledger_service.lock_student", new_callable=AsyncMock) as lock_student, \
         patch("cohort_lms.services.ledger_service.get_week", new_callable=AsyncMock) as get_week, \
         patch("cohort_lms.services.ledger_service.lock_progress", new_callable=AsyncMock) as lock_progress, \
         patch("cohort_lms.services.ledger_service.graded_submissions", new_callable=AsyncMock) as graded, \
         patch("cohort_lms.services.ledger_service.resum_total_points", new_callable=AsyncMock) as resum, \
         patch("cohort_lms.services.gating_service.evaluate_unlocks", new_callable=AsyncMock) as evaluate, \
         patch("cohort_lms.services.review_service.manager") as manager:
        manager.send_to_user = AsyncMock(return_value=1)
        yield SimpleNamespace(
            lock_student=lock_student,
            get_week=get_week,
            lock_progress=lock_progress,
            graded=graded,
            resum=resum,
            evaluate=evaluate,
            manager=manager,
        )


class TestScoreSubmission:
    """Tests for picking the scoring rule per submission."""

    def test_rejected_earns_nothing(self):
        """Verify rejected submissions score zero points and bonus."""
        from cohort_lms.models.enums import SubmissionStatus
        from cohort_lms.services.review_service import score_submission

        submission = _submission(status=SubmissionStatus.REJECTED)

        result = score_submission(submission, 90, 60)

        assert (result.points, result.bonus) == (0, 0)

    def test_quiz_uses_assignment_budget(self):
        """Verify quiz reviews rescale onto the assignment budget."""
        from cohort_lms.models.enums import SubmissionKind
        from cohort_lms.services.review_service import component_for, score_submission

        submission = _submission(kind=SubmissionKind.QUIZ, total_questions=5)

        result = score_submission(submission, 2, 60)

        assert result.points == 24
        assert component_for(submission).value == "quiz_points"


class TestReviewSubmission:
    """Tests for review_submission."""

    @pytest.mark.asyncio
    async def test_assignment_review_updates_ledger(self, mock_async_session, ledger_patches):
        """Verify an on-time 80 review adds 53 points and completes the week."""
        from cohort_lms.core.database import run_after_commit
        from cohort_lms.models.enums import SubmissionStatus
        from cohort_lms.services import review_service

        submission = _submission()
        student = make_student(id=submission.user_id)
        row = make_row(1, points=40, video_points=40, video_watched=True, user_id=student.id)
        mock_async_session.get.return_value = submission
        ledger_patches.lock_student.return_value = student
        ledger_patches.get_week.return_value = make_week(1, 1)
        ledger_patches.lock_progress.return_value = row
        ledger_patches.graded.return_value = [submission]
        reviewer = make_student(is_admin=True)

        result = await review_service.review_submission(
            submission.id, 80, reviewer, mock_async_session, feedback="Nice",
        )

        assert result.status == SubmissionStatus.REVIEWED
        assert result.reviewed_by == reviewer.id
        assert row.points == 93
        assert row.bonus_points == 5
        assert row.completed is True
        ledger_patches.resum.assert_awaited_once_with(student, mock_async_session)
        ledger_patches.evaluate.assert_awaited_once_with(student.id, mock_async_session)
        ledger_patches.manager.send_to_user.assert_not_awaited()
        await run_after_commit(mock_async_session)
        ledger_patches.manager.send_to_user.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rejected_review_zeroes_component(self, mock_async_session, ledger_patches):
        """Verify rejecting a scored submission removes its points."""
        from cohort_lms.models.enums import SubmissionStatus
        from cohort_lms.services import review_service

        submission = _submission(score=80, status=SubmissionStatus.REVIEWED)
        student = make_student(id=submission.user_id)
        row = make_row(
            1, points=93, video_points=40, assignment_points=48, bonus_points=5,
            video_watched=True, completed=True, user_id=student.id,
        )
        mock_async_session.get.return_value = submission
        ledger_patches.lock_student.return_value = student
        ledger_patches.get_week.return_value = make_week(1, 1)
        ledger_patches.lock_progress.return_value = row
        ledger_patches.graded.return_value = [submission]

        await review_service.review_submission(
            submission.id, 80, make_student(), mock_async_session,
            review_status=SubmissionStatus.REJECTED,
        )

        assert row.points == 40
        assert row.completed is False

    @pytest.mark.asyncio
    async def test_missing_submission_is_404(self, mock_async_session):
        """Verify an unknown id raises 404 before touching the ledger."""
        from fastapi import HTTPException

        from cohort_lms.services import review_service

        mock_async_session.get.return_value = None

        with pytest.raises(HTTPException) as exc_info:
            await review_service.review_submission(uuid.uuid4(), 50, make_student(), mock_async_session)

        assert exc_info.value.status_code == 404


class TestUpdateSubmission:
    """Tests for update_submission."""

    @pytest.mark.asyncio
    async def test_status_only_change_on_unscored_submission(self, mock_async_session, ledger_patches):
        """Verify an unscored submission only gets its status and feedback edited."""
        from cohort_lms.models.enums import SubmissionStatus
        from cohort_lms.services import review_service

        submission = _submission()
        mock_async_session.get.return_value = submission

        result = await review_service.update_submission(
            submission.id, make_student(), mock_async_session,
            feedback="Resubmit with tests", review_status=SubmissionStatus.REJECTED,
        )

        assert result.status == SubmissionStatus.REJECTED
        assert result.feedback == "Resubmit with tests"
        ledger_patches.lock_progress.assert_not_awaited()


class TestDiscardSubmission:
    """Tests for deleting a submission."""

    @pytest.mark.asyncio
    async def test_delete_reverses_points_and_completion(self, mock_async_session, ledger_patches):
        """Verify deletion zeroes the component, clears completion and re-sums."""
        from cohort_lms.services import review_service

        submission = _submission(score=80)
        student = make_student(id=submission.user_id)
        row = make_row(
            1, points=93, video_points=40, assignment_points=48, bonus_points=5,
            video_watched=True, completed=True, assignment_submitted=True, user_id=student.id,
        )
        ledger_patches.lock_student.return_value = student
        ledger_patches.lock_progress.return_value = row
        ledger_patches.graded.return_value = []
        mock_async_session.scalar.return_value = 0

        with patch("cohort_lms.services.storage_service.remove_file", new=MagicMock()) as remove_file:
            await review_service.discard_submission(submission, mock_async_session)

        assert row.points == 40
        assert row.assignment_points == 0
        assert row.bonus_points == 0
        assert row.completed is False
        assert row.assignment_submitted is False
        mock_async_session.delete.assert_awaited_once_with(submission)
        ledger_patches.resum.assert_awaited_once_with(student, mock_async_session)
        remove_file.assert_called_once_with(None)

    @pytest.mark.asyncio
    async def test_delete_unscored_keeps_points(self, mock_async_session, ledger_patches):
        """Verify deleting a pending submission leaves earned points alone."""
        from cohort_lms.services import review_service

        submission = _submission(score=None)
        student = make_student(id=submission.user_id)
        row = make_row(1, points=40, video_points=40, video_watched=True, user_id=student.id)
        ledger_patches.lock_student.return_value = student
        ledger_patches.lock_progress.return_value = row
        ledger_patches.graded.return_value = []
        mock_async_session.scalar.return_value = 1

        with patch("cohort_lms.services.storage_service.remove_file", new=MagicMock()):
            await review_service.discard_submission(submission, mock_async_session)

        assert row.points == 40
        assert row.assignment_submitted is True
