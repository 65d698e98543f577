"""
Scoring Engine

Pure functions that turn raw performance signals into points and keep a
progress row's aggregate consistent with its components. Nothing in this
module touches the database; callers are responsible for holding the row
lock while they apply a result.
"""

import enum
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from cohort_lms.models.enums import SubmissionKind, SubmissionStatus


# ============== Constants ==============

VIDEO_COMPLETION_THRESHOLD = 90
PASS_PERCENTAGE = 60
ON_TIME_BONUS_RATE = 0.1
DEFAULT_QUESTION_POINTS = 1


class Component(str, enum.Enum):
    """Point component of a progress row, valued by its column name."""
    VIDEO = "video_points"
    ASSIGNMENT = "assignment_points"
    QUIZ = "quiz_points"


class Ledger(Protocol):
    """The point columns of a progress row."""
    video_points: int
    assignment_points: int
    quiz_points: int
    bonus_points: int
    points: int


class Graded(Protocol):
    """The fields of a submission that decide whether it passes."""
    kind: SubmissionKind
    score: Optional[int]
    total_questions: Optional[int]
    status: SubmissionStatus


# ============== Arithmetic helpers ==============

def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide, treating a zero or missing denominator as a ratio of 0."""
    if not denominator:
        return 0.0
    return numerator / denominator


def bound_percentage(value: float) -> float:
    """Clamp a reported percentage into 0..100 without rounding."""
    return max(0.0, min(100.0, float(value)))


def clamp_percentage(value: float) -> int:
    """Clamp a reported percentage into 0..100 and round it for storage."""
    return round_half_up(bound_percentage(value))


# ============== Component scores ==============

@dataclass(frozen=True)
class ComponentScore:
    """
    Result of scoring one component.

    ``bonus`` of None leaves the row's existing bonus untouched.
    """
    points: int
    bonus: Optional[int] = 0


@dataclass(frozen=True)
class QuizGrade:
    """Outcome of auto-grading a quiz attempt."""
    score: int
    total_questions: int
    max_score: int
    correct: list[bool] = field(default_factory=list)

    @property
    def percentage(self) -> int:
        return round_half_up(safe_ratio(self.score, self.total_questions) * 100)


def video_award_due(already_watched: bool, video_progress: float, completed: bool) -> bool:
    """
    Whether the video component should be awarded now.

    The award is sticky: once watched, later low progress reports never
    revoke it, and it is granted only once.
    """
    if already_watched:
        return False
    return completed or video_progress >= VIDEO_COMPLETION_THRESHOLD


def score_video(video_budget: int) -> ComponentScore:
    """Full video budget; the assignment bonus is left as is."""
    return ComponentScore(points=video_budget, bonus=None)


def score_assignment(score: int, assignment_budget: int, is_on_time: bool) -> ComponentScore:
    """
    Score a graded assignment.

    Args:
        score: Reviewer score, 0-100.
        assignment_budget: The week's assignment point allocation.
        is_on_time: On-time flag recorded at submission.

    Returns:
        ComponentScore with a 10% bonus of the awarded points when on time.
    """
    awarded = round_half_up(safe_ratio(score, 100) * assignment_budget)
    bonus = round_half_up(awarded * ON_TIME_BONUS_RATE) if is_on_time else 0
    return ComponentScore(points=awarded, bonus=bonus)


def _question_points(question: Mapping[str, Any]) -> int:
    points = question.get("points")
    return DEFAULT_QUESTION_POINTS if points is None else int(points)


def _answer_for(answers: Mapping[Any, Any], index: int) -> Any:
    # JSON object keys arrive as strings
    if index in answers:
        return answers[index]
    return answers.get(str(index))


def _same_option(answer: Any, correct: Any) -> bool:
    if answer is None or correct is None:
        return False
    try:
        return int(answer) == int(correct)
    except (TypeError, ValueError):
        return answer == correct


def grade_quiz(questions: Sequence[Mapping[str, Any]], answers: Mapping[Any, Any]) -> QuizGrade:
    """
    Auto-grade a quiz attempt.

    Each question whose selected option index equals ``correct_answer``
    contributes its ``points`` (1 when unset). Unanswered questions score 0.
    """
    score = 0
    max_score = 0
    correct: list[bool] = []
    for index, question in enumerate(questions):
        worth = _question_points(question)
        max_score += worth
        hit = _same_option(_answer_for(answers, index), question.get("correct_answer"))
        correct.append(hit)
        if hit:
            score += worth
    return QuizGrade(score=score, total_questions=len(questions), max_score=max_score, correct=correct)


def score_quiz_attempt(grade: QuizGrade) -> ComponentScore:
    """Auto-graded quiz: the raw score is the component; bonus untouched."""
    return ComponentScore(points=grade.score, bonus=None)


def score_quiz_review(score: int, total_questions: int, assignment_budget: int) -> ComponentScore:
    """
    Admin re-grade of a quiz, rescaled onto the assignment budget.

    ``round(score / total_questions * assignment_budget)`` with no bonus.
    The ratio is capped at 1 so weighted questions cannot exceed the budget.
    """
    ratio = min(1.0, safe_ratio(score, total_questions))
    return ComponentScore(points=round_half_up(ratio * assignment_budget), bonus=0)


# ============== Aggregate maintenance ==============

def apply_component(row: Ledger, component: Component, result: ComponentScore) -> int:
    """
    Write a component score into a ledger row.

    The aggregate is adjusted by removing the old component and bonus and
    adding the new ones, never overwritten from scratch.

    Returns:
        The change in the row's aggregate points.
    """
    old_value = getattr(row, component.value) or 0
    old_bonus = row.bonus_points or 0
    new_bonus = old_bonus if result.bonus is None else result.bonus

    before = row.points or 0
    row.points = before - old_value - old_bonus + result.points + new_bonus
    setattr(row, component.value, result.points)
    row.bonus_points = new_bonus
    return row.points - before


def clear_component(row: Ledger, component: Component) -> int:
    """Zero a component together with the bonus."""
    return apply_component(row, component, ComponentScore(points=0, bonus=0))


# ============== Completion ==============

def submission_passes(submission: Graded) -> bool:
    """
    Whether a graded submission meets its pass threshold.

    Assignments need a score of at least 60 out of 100; quizzes need at
    least 60% of their questions right. Rejected or ungraded work never
    passes.
    """
    if submission.status == SubmissionStatus.REJECTED or submission.score is None:
        return False
    if submission.kind == SubmissionKind.QUIZ:
        return safe_ratio(submission.score, submission.total_questions or 0) * 100 >= PASS_PERCENTAGE
    return submission.score >= PASS_PERCENTAGE


def evaluate_completion(video_watched: bool, submissions: Iterable[Graded]) -> bool:
    """A week is complete once the video is watched and any graded work passes."""
    if not video_watched:
        return False
    return any(submission_passes(s) for s in submissions)
