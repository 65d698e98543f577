"""
Scoring Engine Unit Tests

Tests for component scoring, quiz grading, the delta rule and the
completion predicate.
"""

from types import SimpleNamespace

import pytest

from tests.factories import make_row


def _graded(kind, score, status=None, total_questions=None):
    from cohort_lms.models.enums import SubmissionStatus

    return SimpleNamespace(
        kind=kind,
        score=score,
        total_questions=total_questions,
        status=status or SubmissionStatus.REVIEWED,
    )


class TestArithmetic:
    """Tests for the rounding and ratio helpers."""

    def test_round_half_up(self):
        """Verify halves round away from zero."""
        from cohort_lms.services.scoring import round_half_up

        assert round_half_up(4.5) == 5
        assert round_half_up(2.5) == 3
        assert round_half_up(4.4) == 4

    def test_safe_ratio_zero_denominator(self):
        """Verify a zero denominator yields 0 instead of raising."""
        from cohort_lms.services.scoring import safe_ratio

        assert safe_ratio(3, 0) == 0.0
        assert safe_ratio(3, None) == 0.0
        assert safe_ratio(1, 4) == 0.25

    def test_clamp_percentage(self):
        """Verify reported percentages are clamped into 0..100."""
        from cohort_lms.services.scoring import clamp_percentage

        assert clamp_percentage(-5) == 0
        assert clamp_percentage(150) == 100
        assert clamp_percentage(89.6) == 90

    def test_bound_percentage_keeps_fraction(self):
        """Verify bounding clamps without rounding."""
        from cohort_lms.services.scoring import bound_percentage

        assert bound_percentage(89.5) == 89.5
        assert bound_percentage(-1) == 0.0
        assert bound_percentage(101) == 100.0


class TestComponentScores:
    """Tests for per-component scoring."""

    def test_assignment_on_time_gets_bonus(self):
        """Verify 80/100 on a 60 budget is 48 points plus a 5 point bonus."""
        from cohort_lms.services.scoring import score_assignment

        result = score_assignment(80, 60, is_on_time=True)

        assert result.points == 48
        assert result.bonus == 5

    def test_assignment_late_has_no_bonus(self):
        """Verify late submissions earn no bonus."""
        from cohort_lms.services.scoring import score_assignment

        result = score_assignment(80, 60, is_on_time=False)

        assert result.points == 48
        assert result.bonus == 0

    def test_video_leaves_bonus_untouched(self):
        """Verify the video score carries no bonus change."""
        from cohort_lms.services.scoring import score_video

        result = score_video(40)

        assert result.points == 40
        assert result.bonus is None

    def test_quiz_review_rescales_to_assignment_budget(self):
        """Verify 2 of 5 correct on a 60 budget is 24 points."""
        from cohort_lms.services.scoring import score_quiz_review

        result = score_quiz_review(2, 5, 60)

        assert result.points == 24
        assert result.bonus == 0

    def test_quiz_review_without_questions(self):
        """Verify zero questions yields zero instead of a division error."""
        from cohort_lms.services.scoring import score_quiz_review

        assert score_quiz_review(3, 0, 60).points == 0

    def test_quiz_review_ratio_is_capped(self):
        """Verify a score above the question count cannot exceed the budget."""
        from cohort_lms.services.scoring import score_quiz_review

        assert score_quiz_review(7, 5, 60).points == 60


class TestQuizGrading:
    """Tests for quiz auto-grading."""

    def test_grades_by_index(self, sample_questions):
        """Verify correct answers are counted and unanswered ones score 0."""
        from cohort_lms.services.scoring import grade_quiz

        grade = grade_quiz(sample_questions, {"0": 1, "1": 1, "2": 0})

        assert grade.score == 2
        assert grade.total_questions == 5
        assert grade.max_score == 5
        assert grade.correct == [True, True, False, False, False]
        assert grade.percentage == 40

    def test_accepts_integer_keys(self, sample_questions):
        """Verify integer-keyed answers are graded like string keys."""
        from cohort_lms.services.scoring import grade_quiz

        grade = grade_quiz(sample_questions, {0: 1, 4: "1"})

        assert grade.score == 2

    def test_weighted_questions(self):
        """Verify question points are summed, defaulting to 1."""
        from cohort_lms.services.scoring import grade_quiz

        questions = [
            {"question": "q1", "options": ["a", "b"], "correct_answer": 0, "points": 3},
            {"question": "q2", "options": ["a", "b"], "correct_answer": 1},
        ]

        grade = grade_quiz(questions, {"0": 0, "1": 1})

        assert grade.score == 4
        assert grade.max_score == 4

    def test_zero_point_question_is_worth_nothing(self):
        """Verify an explicit 0 is kept and only a missing value defaults to 1."""
        from cohort_lms.services.scoring import grade_quiz

        questions = [
            {"question": "q1", "options": ["a", "b"], "correct_answer": 0, "points": 0},
            {"question": "q2", "options": ["a", "b"], "correct_answer": 1, "points": None},
        ]

        grade = grade_quiz(questions, {"0": 0, "1": 1})

        assert grade.score == 1
        assert grade.max_score == 1

    def test_empty_quiz(self):
        """Verify an empty quiz grades to zero."""
        from cohort_lms.services.scoring import grade_quiz

        grade = grade_quiz([], {})

        assert grade.score == 0
        assert grade.percentage == 0


class TestApplyComponent:
    """Tests for the aggregate delta rule."""

    def test_assignment_review_delta(self):
        """Verify an on-time 80 review adds 53 to a row with the video done."""
        from cohort_lms.services.scoring import Component, apply_component, score_assignment

        row = make_row(1, points=40, video_points=40)

        delta = apply_component(row, Component.ASSIGNMENT, score_assignment(80, 60, True))

        assert delta == 53
        assert row.points == 93
        assert row.assignment_points == 48
        assert row.bonus_points == 5

    def test_regrade_replaces_previous_component(self):
        """Verify a re-review swaps old points and bonus for the new ones."""
        from cohort_lms.services.scoring import Component, apply_component, score_assignment

        row = make_row(1, points=40, video_points=40)
        apply_component(row, Component.ASSIGNMENT, score_assignment(80, 60, True))

        delta = apply_component(row, Component.ASSIGNMENT, score_assignment(50, 60, False))

        assert delta == -23
        assert row.points == 70
        assert row.bonus_points == 0

    def test_video_keeps_existing_bonus(self):
        """Verify awarding the video does not disturb the assignment bonus."""
        from cohort_lms.services.scoring import Component, apply_component, score_assignment, score_video

        row = make_row(1)
        apply_component(row, Component.ASSIGNMENT, score_assignment(100, 60, True))

        delta = apply_component(row, Component.VIDEO, score_video(40))

        assert delta == 40
        assert row.points == 106
        assert row.bonus_points == 6

    def test_points_equal_sum_of_components(self):
        """Verify the aggregate always equals the component sum."""
        from cohort_lms.services.scoring import (
            Component,
            apply_component,
            clear_component,
            score_assignment,
            score_quiz_attempt,
            score_video,
        )
        from cohort_lms.services.scoring import QuizGrade

        row = make_row(1)
        apply_component(row, Component.VIDEO, score_video(40))
        apply_component(row, Component.QUIZ, score_quiz_attempt(QuizGrade(3, 5, 5)))
        apply_component(row, Component.ASSIGNMENT, score_assignment(90, 60, True))
        clear_component(row, Component.ASSIGNMENT)

        expected = row.video_points + row.assignment_points + row.quiz_points + row.bonus_points
        assert row.points == expected == 43


class TestVideoAward:
    """Tests for the sticky video award."""

    def test_threshold_awards(self):
        """Verify 90% or an explicit completion awards the video."""
        from cohort_lms.services.scoring import video_award_due

        assert video_award_due(False, 95, False) is True
        assert video_award_due(False, 10, True) is True
        assert video_award_due(False, 89, False) is False
        assert video_award_due(False, 89.5, False) is False
        assert video_award_due(False, 90, False) is True

    def test_award_is_sticky(self):
        """Verify a later low report neither re-awards nor revokes."""
        from cohort_lms.services.scoring import video_award_due

        assert video_award_due(True, 40, False) is False
        assert video_award_due(True, 100, True) is False


class TestCompletion:
    """Tests for the completion predicate."""

    def test_requires_video_and_passing_work(self):
        """Verify all four combinations of video and passing assignment."""
        from cohort_lms.models.enums import SubmissionKind
        from cohort_lms.services.scoring import evaluate_completion

        passing = [_graded(SubmissionKind.ASSIGNMENT, 70)]
        failing = [_graded(SubmissionKind.ASSIGNMENT, 40)]

        assert evaluate_completion(True, passing) is True
        assert evaluate_completion(True, failing) is False
        assert evaluate_completion(False, passing) is False
        assert evaluate_completion(False, failing) is False

    def test_quiz_passes_at_sixty_percent(self):
        """Verify quizzes pass on the ratio of correct answers."""
        from cohort_lms.models.enums import SubmissionKind
        from cohort_lms.services.scoring import submission_passes

        assert submission_passes(_graded(SubmissionKind.QUIZ, 3, total_questions=5)) is True
        assert submission_passes(_graded(SubmissionKind.QUIZ, 2, total_questions=5)) is False
        assert submission_passes(_graded(SubmissionKind.QUIZ, 0, total_questions=0)) is False

    def test_rejected_or_ungraded_never_passes(self):
        """Verify rejected and unscored submissions do not count."""
        from cohort_lms.models.enums import SubmissionKind, SubmissionStatus
        from cohort_lms.services.scoring import submission_passes

        assert submission_passes(
            _graded(SubmissionKind.ASSIGNMENT, 100, status=SubmissionStatus.REJECTED)
        ) is False
        assert submission_passes(_graded(SubmissionKind.ASSIGNMENT, None)) is False

    def test_any_passing_submission_completes(self):
        """Verify a passing quiz completes the week despite a failed assignment."""
        from cohort_lms.models.enums import SubmissionKind
        from cohort_lms.services.scoring import evaluate_completion

        submissions = [
            _graded(SubmissionKind.ASSIGNMENT, 30),
            _graded(SubmissionKind.QUIZ, 4, total_questions=5),
        ]

        assert evaluate_completion(True, submissions) is True


@pytest.mark.parametrize("score,expected", [(0, 0), (59, 35), (100, 60)])
def test_assignment_points_scale_with_score(score, expected):
    """Verify assignment points are the rounded share of the budget."""
    from cohort_lms.services.scoring import score_assignment

    assert score_assignment(score, 60, False).points == expected
