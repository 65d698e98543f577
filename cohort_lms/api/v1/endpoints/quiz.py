"""
Quiz Routes

Auto-graded multiple-choice quizzes, one attempt per week.
"""

from fastapi import APIRouter, status

from cohort_lms.api.deps import CurrentUser, DbSession
from cohort_lms.schemas.submission import QuizResults, QuizSubmitRequest, QuizSubmitResult
from cohort_lms.services import quiz_service


router = APIRouter(prefix="/quiz", tags=["Quiz"])


@router.post(
    "/{week_id}/submit",
    response_model=QuizSubmitResult,
    status_code=status.HTTP_201_CREATED,
    summary="Submit quiz answers",
)
async def submit_quiz(
    week_id: int,
    data: QuizSubmitRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> dict:
    """
    Grade the answers immediately and record the attempt.

    Raises:
        HTTPException: 404 if the week does not exist.
        HTTPException: 400 if the week has no questions.
        HTTPException: 403 if the week is locked.
        HTTPException: 409 if the quiz was already submitted.
    """
    submission, grade = await quiz_service.submit_quiz(current_user, week_id, data.answers, db)
    return {
        "message": "Quiz submitted successfully",
        "score": grade.score,
        "total_questions": grade.total_questions,
        "max_score": grade.max_score,
        "percentage": grade.percentage,
        "submission": submission,
    }


@router.get(
    "/{week_id}/results",
    response_model=QuizResults,
    summary="Get own quiz results",
)
async def get_quiz_results(week_id: int, current_user: CurrentUser, db: DbSession) -> dict:
    """
    Raises:
        HTTPException: 404 if the quiz has not been taken.
    """
    return await quiz_service.quiz_results(current_user, week_id, db)
