"""
Curriculum Schemas

Phases, weeks and week content.
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from cohort_lms.core.json_column import normalize_json


class QuizQuestion(BaseModel):
    """A multiple-choice question; ``correct_answer`` indexes ``options``."""

    question: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=2)
    correct_answer: int = Field(..., ge=0)
    points: int = Field(default=1, ge=0)

    @model_validator(mode="after")
    def check_answer_in_range(self) -> "QuizQuestion":
        if self.correct_answer >= len(self.options):
            raise ValueError("correct_answer must index one of the options")
        return self


class Resource(BaseModel):
    title: str
    url: str
    type: str = "link"


class PublicQuizQuestion(BaseModel):
    """Question as shown to students."""

    question: str
    options: list[str]
    points: Optional[int] = 1


class PhaseResponse(BaseModel):
    id: int
    number: int
    title: str
    description: Optional[str] = None
    start_week: int
    end_week: int
    color: str
    is_active: bool
    required_points_percentage: int

    model_config = {"from_attributes": True}


class WeekBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    video_points: int = Field(default=40, ge=0)
    assignment_points: int = Field(default=60, ge=0)


class WeekCreate(WeekBase):
    phase_id: int
    week_number: int = Field(..., ge=1)
    order: Optional[int] = None


class WeekUpdate(BaseModel):
    """Partial week update."""

    phase_id: Optional[int] = None
    week_number: Optional[int] = Field(None, ge=1)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    video_points: Optional[int] = Field(None, ge=0)
    assignment_points: Optional[int] = Field(None, ge=0)
    order: Optional[int] = None


class WeekResponse(BaseModel):
    id: int
    phase_id: int
    week_number: int
    title: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    max_points: int
    video_points: int
    assignment_points: int
    order: int

    model_config = {"from_attributes": True}


def _parse_list(value: Any) -> Any:
    # Older clients post these fields as JSON-encoded strings
    if isinstance(value, (str, bytes)):
        return normalize_json(value, [])
    return [] if value is None else value


class ContentUpsert(BaseModel):
    """Create or replace the content of a week. Omitted fields are kept."""

    instructions: Optional[str] = None
    notes: Optional[str] = None
    video_url: Optional[str] = None
    video_title: Optional[str] = None
    video_duration: Optional[int] = Field(None, ge=0)
    video2_url: Optional[str] = None
    video2_title: Optional[str] = None
    video2_duration: Optional[int] = Field(None, ge=0)
    multiple_choice_questions: Optional[list[QuizQuestion]] = None
    resources: Optional[list[Resource]] = None
    assignment_description: Optional[str] = None
    assignment_deadline: Optional[datetime] = None
    grading_criteria: Optional[str] = None
    is_published: Optional[bool] = None

    @field_validator("multiple_choice_questions", "resources", mode="before")
    @classmethod
    def parse_json_strings(cls, value: Any) -> Any:
        return _parse_list(value)


class ContentResponse(BaseModel):
    id: int
    week_id: int
    instructions: Optional[str] = None
    notes: Optional[str] = None
    video_url: Optional[str] = None
    video_title: Optional[str] = None
    video_duration: Optional[int] = None
    video2_url: Optional[str] = None
    video2_title: Optional[str] = None
    video2_duration: Optional[int] = None
    multiple_choice_questions: list[dict[str, Any]] = []
    resources: list[dict[str, Any]] = []
    assignment_description: Optional[str] = None
    assignment_deadline: Optional[datetime] = None
    grading_criteria: Optional[str] = None
    is_published: bool

    model_config = {"from_attributes": True}

    def for_student(self) -> "ContentResponse":
        """Copy with the answer key removed from every question."""
        return self.model_copy(
            update={
                "multiple_choice_questions": [
                    PublicQuizQuestion.model_validate(q).model_dump()
                    for q in self.multiple_choice_questions
                ]
            }
        )


class WeekWithContent(WeekResponse):
    content: Optional[ContentResponse] = None


class PhaseWithWeeks(PhaseResponse):
    weeks: list[WeekWithContent] = []
