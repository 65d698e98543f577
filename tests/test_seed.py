"""
Seed Data Unit Tests

Tests for the default course layout and placeholder content.
"""

from datetime import date, datetime, timezone
from types import SimpleNamespace


class TestCourseLayout:
    """Tests for the seeded phases and week calendar."""

    def test_phases_cover_every_week_once(self):
        """Verify the three phases partition weeks 1-26."""
        from cohort_lms.services.seed import PHASES, WEEKS, phase_for

        assert len(PHASES) == 3
        assert len(WEEKS) == 26
        assert [phase_for(n)["number"] for n in (1, 8, 9, 16, 17, 26)] == [1, 1, 2, 2, 3, 3]

    def test_week_dates_are_consecutive(self):
        """Verify each week spans seven days starting on the cohort start date."""
        from cohort_lms.services.seed import week_dates

        assert week_dates(1) == (date(2026, 1, 26), date(2026, 2, 1))
        assert week_dates(2)[0] == date(2026, 2, 2)

    def test_placeholder_deadline_is_day_after_week_end(self):
        """Verify the assignment deadline falls the day after the week ends."""
        from cohort_lms.services.seed import placeholder_content

        week = SimpleNamespace(
            id=1,
            week_number=1,
            title="Introduction",
            description="Getting started",
            end_date=date(2026, 2, 1),
        )

        content = placeholder_content(week)

        assert content.assignment_deadline == datetime(2026, 2, 2, tzinfo=timezone.utc)
        assert content.is_published is True
        assert content.resources
