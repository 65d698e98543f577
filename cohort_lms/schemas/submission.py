"""
Submission Schemas

Assignment and quiz submissions plus admin review payloads.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from cohort_lms.models.enums import SubmissionKind, SubmissionStatus


class SubmissionResponse(BaseModel):
    """Schema for either kind of submission."""

    id: uuid.UUID
    user_id: uuid.UUID
    week_id: int
    kind: SubmissionKind
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    github_url: Optional[str] = None
    description: Optional[str] = None
    is_on_time: bool
    total_questions: Optional[int] = None
    score: Optional[int] = None
    feedback: Optional[str] = None
    status: SubmissionStatus
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[uuid.UUID] = None

    model_config = {"from_attributes": True}


class AdminSubmissionResponse(SubmissionResponse):
    """Submission with the student and week it belongs to."""

    student_name: Optional[str] = None
    student_email: Optional[str] = None
    week_number: Optional[int] = None
    week_title: Optional[str] = None


class SubmissionList(BaseModel):
    submissions: list[AdminSubmissionResponse]
    total: int
    page: int
    pages: int


class ReviewRequest(BaseModel):
    """Admin grading payload. ``status`` must be a known review status."""

    score: int = Field(..., ge=0, le=100, description="0-100 for assignments; correct answers for quizzes")
    feedback: Optional[str] = None
    status: SubmissionStatus = SubmissionStatus.REVIEWED


class SubmissionUpdate(BaseModel):
    score: Optional[int] = Field(None, ge=0, le=100)
    feedback: Optional[str] = None
    status: Optional[SubmissionStatus] = None


class QuizSubmitRequest(BaseModel):
    """Selected option index per question index."""

    answers: dict[int, Optional[int]] = Field(
        ...,
        description="Question index to selected option index (e.g. {'0': 2})",
    )


class QuizSubmitResult(BaseModel):
    message: str
    score: int
    total_questions: int
    max_score: int
    percentage: int
    submission: SubmissionResponse


class QuizQuestionResult(BaseModel):
    index: int
    question: Optional[str] = None
    options: list[Any] = []
    selected: Optional[Any] = None
    correct_answer: Optional[Any] = None
    is_correct: bool


class QuizResults(BaseModel):
    submission: SubmissionResponse
    week_number: int
    week_title: str
    percentage: int
    questions: list[QuizQuestionResult]
