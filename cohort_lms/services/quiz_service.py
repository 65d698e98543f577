"""
Quiz Service

Auto-grading of weekly multiple-choice quizzes.
"""

import logging
from typing import Any, Mapping

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_lms.core.database import on_commit
from cohort_lms.models.enums import SubmissionKind, SubmissionStatus
from cohort_lms.models.submission import Submission
from cohort_lms.models.user import User
from cohort_lms.services import gating, gating_service, ledger_service, scoring
from cohort_lms.services.notification_service import NEW_SUBMISSION, manager


logger = logging.getLogger(__name__)


async def find_quiz_submission(user_id, week_id: int, db: AsyncSession) -> Submission | None:
    result = await db.execute(
        select(Submission).where(
            Submission.user_id == user_id,
            Submission.week_id == week_id,
            Submission.kind == SubmissionKind.QUIZ,
        )
    )
    return result.scalar_one_or_none()


async def submit_quiz(
    user: User,
    week_id: int,
    answers: Mapping[Any, Any],
    db: AsyncSession,
) -> tuple[Submission, scoring.QuizGrade]:
    """
    Grade and record a quiz attempt. One attempt per student per week.

    Raises:
        HTTPException: 404 if the week does not exist.
        HTTPException: 400 if the week has no quiz questions.
        HTTPException: 403 if the week is locked.
        HTTPException: 409 if the quiz was already submitted.
    """
    week = await ledger_service.get_week(week_id, db)
    questions = week.content.multiple_choice_questions if week.content else []
    if not questions:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No quiz questions available for this week",
        )

    student = await ledger_service.lock_student(user.id, db)
    row = await ledger_service.lock_progress(student.id, week.id, db, create=False)
    if not gating.is_unlocked(row):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Week is locked",
        )

    if await find_quiz_submission(student.id, week.id, db):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Quiz already submitted",
        )

    grade = scoring.grade_quiz(questions, answers)
    submission = Submission(
        user_id=student.id,
        week_id=week.id,
        kind=SubmissionKind.QUIZ,
        answers={str(k): v for k, v in answers.items()},
        score=grade.score,
        total_questions=grade.total_questions,
        status=SubmissionStatus.SUBMITTED,
        submitted_at=ledger_service.utcnow(),
    )
    db.add(submission)
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Quiz already submitted",
        )

    row.quiz_submitted = True
    scoring.apply_component(row, scoring.Component.QUIZ, scoring.score_quiz_attempt(grade))
    await ledger_service.refresh_completion(row, db)
    await ledger_service.resum_total_points(student, db)
    await gating_service.evaluate_unlocks(student.id, db)

    logger.info(
        "Quiz for week %s graded for user %s: %s/%s",
        week.week_number,
        student.id,
        grade.score,
        grade.total_questions,
    )
    on_commit(
        db,
        manager.broadcast_admins,
        NEW_SUBMISSION,
        {
            "submission_id": str(submission.id),
            "kind": SubmissionKind.QUIZ.value,
            "student_id": str(student.id),
            "student_name": student.full_name,
            "week_number": week.week_number,
            "score": grade.score,
            "total_questions": grade.total_questions,
        },
    )
    return submission, grade


async def quiz_results(user: User, week_id: int, db: AsyncSession) -> dict[str, Any]:
    """
    The caller's graded attempt with per-question correctness.

    Raises:
        HTTPException: 404 if no attempt exists.
    """
    week = await ledger_service.get_week(week_id, db)
    submission = await find_quiz_submission(user.id, week.id, db)
    if submission is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Quiz submission not found",
        )

    questions = week.content.multiple_choice_questions if week.content else []
    grade = scoring.grade_quiz(questions, submission.answers)
    return {
        "submission": submission,
        "week_number": week.week_number,
        "week_title": week.title,
        "percentage": scoring.round_half_up(
            scoring.safe_ratio(submission.score or 0, submission.total_questions or 0) * 100
        ),
        "questions": [
            {
                "index": index,
                "question": question.get("question"),
                "options": question.get("options", []),
                "selected": submission.answers.get(str(index)),
                "correct_answer": question.get("correct_answer"),
                "is_correct": grade.correct[index] if index < len(grade.correct) else False,
            }
            for index, question in enumerate(questions)
        ],
    }
