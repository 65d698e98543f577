"""
Review Service

Admin grading of assignments and quizzes, and removal of submissions.
Both kinds live in one table, so every operation resolves a submission by
id alone and branches on ``kind``.
"""

import logging
import uuid
from typing import Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_lms.core.database import on_commit
from cohort_lms.models.enums import SubmissionKind, SubmissionStatus
from cohort_lms.models.submission import Submission
from cohort_lms.models.user import User
from cohort_lms.services import gating_service, ledger_service, scoring, storage_service
from cohort_lms.services.notification_service import SUBMISSION_REVIEWED, manager


logger = logging.getLogger(__name__)


def component_for(submission: Submission) -> scoring.Component:
    if submission.kind == SubmissionKind.QUIZ:
        return scoring.Component.QUIZ
    return scoring.Component.ASSIGNMENT


def score_submission(submission: Submission, score: int, assignment_budget: int) -> scoring.ComponentScore:
    """
    Points for a reviewed submission.

    Rejected work earns nothing; quizzes are rescaled onto the assignment
    budget without bonus; assignments earn the on-time bonus.
    """
    if submission.status == SubmissionStatus.REJECTED:
        return scoring.ComponentScore(points=0, bonus=0)
    if submission.kind == SubmissionKind.QUIZ:
        return scoring.score_quiz_review(score, submission.total_questions or 0, assignment_budget)
    return scoring.score_assignment(score, assignment_budget, submission.is_on_time)


async def get_submission(submission_id: uuid.UUID, db: AsyncSession) -> Submission:
    """
    Raises:
        HTTPException: 404 if the submission does not exist.
    """
    submission = await db.get(Submission, submission_id)
    if submission is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Submission not found",
        )
    return submission


async def _grade(
    submission: Submission,
    score: int,
    review_status: SubmissionStatus,
    feedback: Optional[str],
    reviewer: User,
    db: AsyncSession,
) -> Submission:
    student = await ledger_service.lock_student(submission.user_id, db)
    week = await ledger_service.get_week(submission.week_id, db)
    row = await ledger_service.lock_progress(student.id, week.id, db)

    submission.score = score
    submission.status = review_status
    if feedback is not None:
        submission.feedback = feedback
    submission.reviewed_at = ledger_service.utcnow()
    submission.reviewed_by = reviewer.id

    result = score_submission(submission, score, week.assignment_points)
    delta = scoring.apply_component(row, component_for(submission), result)
    logger.info(
        "Reviewed %s %s for user %s: %s points, %s bonus (%+d)",
        submission.kind.value,
        submission.id,
        student.id,
        result.points,
        result.bonus,
        delta,
    )

    await ledger_service.refresh_completion(row, db)
    await ledger_service.resum_total_points(student, db)
    await gating_service.evaluate_unlocks(student.id, db)

    on_commit(
        db,
        manager.send_to_user,
        student.id,
        SUBMISSION_REVIEWED,
        {
            "submission_id": str(submission.id),
            "kind": submission.kind.value,
            "week_number": week.week_number,
            "score": score,
            "status": review_status.value,
            "feedback": submission.feedback,
        },
    )
    return submission


async def review_submission(
    submission_id: uuid.UUID,
    score: int,
    reviewer: User,
    db: AsyncSession,
    feedback: Optional[str] = None,
    review_status: SubmissionStatus = SubmissionStatus.REVIEWED,
) -> Submission:
    """
    Grade a submission and fold the result into the ledger.

    Args:
        submission_id: Assignment or quiz submission.
        score: 0-100 for assignments; correct answers for quizzes.
        reviewer: Admin performing the review.
        db: Database session.
        feedback: Optional reviewer comment.
        review_status: Resulting status (REVIEWED by default).

    Raises:
        HTTPException: 404 if the submission does not exist.
    """
    submission = await get_submission(submission_id, db)
    return await _grade(submission, score, review_status, feedback, reviewer, db)


async def update_submission(
    submission_id: uuid.UUID,
    reviewer: User,
    db: AsyncSession,
    score: Optional[int] = None,
    feedback: Optional[str] = None,
    review_status: Optional[SubmissionStatus] = None,
) -> Submission:
    """
    Edit a review. Points are recomputed whenever a score is in effect.
    """
    submission = await get_submission(submission_id, db)
    effective_score = score if score is not None else submission.score
    new_status = review_status or submission.status

    if effective_score is None:
        submission.status = new_status
        if feedback is not None:
            submission.feedback = feedback
        return submission

    return await _grade(submission, effective_score, new_status, feedback, reviewer, db)


async def discard_submission(submission: Submission, db: AsyncSession) -> None:
    """
    Remove a submission and its point contribution.

    The component it fed and the bonus are zeroed, ``completed`` is
    recomputed from what remains, and the student's total is re-summed.
    """
    student = await ledger_service.lock_student(submission.user_id, db)
    row = await ledger_service.lock_progress(student.id, submission.week_id, db, create=False)

    if row is not None and submission.score is not None:
        scoring.clear_component(row, component_for(submission))

    file_path = submission.file_path
    kind = submission.kind
    await db.delete(submission)
    await db.flush()

    if row is not None:
        if kind == SubmissionKind.QUIZ:
            row.quiz_submitted = False
        else:
            remaining = await db.scalar(
                select(func.count(Submission.id)).where(
                    Submission.user_id == student.id,
                    Submission.week_id == row.week_id,
                    Submission.kind == SubmissionKind.ASSIGNMENT,
                )
            )
            row.assignment_submitted = bool(remaining)
        await ledger_service.refresh_completion(row, db)

    await ledger_service.resum_total_points(student, db)
    storage_service.remove_file(file_path)
    logger.info("Deleted %s submission for user %s", kind.value, student.id)


async def delete_submission(submission_id: uuid.UUID, db: AsyncSession) -> None:
    submission = await get_submission(submission_id, db)
    await discard_submission(submission, db)


async def list_submissions(
    db: AsyncSession,
    review_status: Optional[SubmissionStatus] = None,
    kind: Optional[SubmissionKind] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[list[Submission], int]:
    """Paginated submissions, newest first."""
    query = select(Submission)
    count_query = select(func.count(Submission.id))
    if review_status is not None:
        query = query.where(Submission.status == review_status)
        count_query = count_query.where(Submission.status == review_status)
    if kind is not None:
        query = query.where(Submission.kind == kind)
        count_query = count_query.where(Submission.kind == kind)

    total = await db.scalar(count_query)
    result = await db.execute(
        query.order_by(Submission.submitted_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), int(total or 0)
