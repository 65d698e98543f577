"""
Test Factories

Lightweight stand-ins for ORM rows used by the pure gating and scoring
rules and by patched service tests.
"""

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace


def make_week(week_id: int, week_number: int, phase_id: int = 1, video_points: int = 40, assignment_points: int = 60):
    return SimpleNamespace(
        id=week_id,
        phase_id=phase_id,
        week_number=week_number,
        title=f"Week {week_number}",
        max_points=video_points + assignment_points,
        video_points=video_points,
        assignment_points=assignment_points,
        content=None,
    )


def make_phase(number: int, weeks: list, required: int = 80, phase_id: int = None):
    return SimpleNamespace(
        id=phase_id if phase_id is not None else number,
        number=number,
        title=f"Phase {number}",
        color="#10B981",
        required_points_percentage=required,
        start_week=min(w.week_number for w in weeks) if weeks else 0,
        end_week=max(w.week_number for w in weeks) if weeks else 0,
        weeks=weeks,
    )


def make_row(week_id: int, points: int = 0, completed: bool = False, is_locked: bool = False, **extra):
    row = SimpleNamespace(
        week_id=week_id,
        video_watched=False,
        video_progress=0,
        assignment_submitted=False,
        quiz_submitted=False,
        video_points=0,
        assignment_points=0,
        quiz_points=0,
        bonus_points=0,
        points=points,
        completed=completed,
        completed_at=None,
        is_locked=is_locked,
        unlocked_at=None,
    )
    for key, value in extra.items():
        setattr(row, key, value)
    return row


def make_student(**extra):
    user = SimpleNamespace(
        id=uuid.uuid4(),
        email="student@example.com",
        full_name="Test Student",
        role=None,
        current_phase=1,
        current_week=1,
        total_points=0,
        is_active=True,
        is_admin=False,
        created_at=datetime(2026, 1, 26, tzinfo=timezone.utc),
        last_login_at=None,
    )
    for key, value in extra.items():
        setattr(user, key, value)
    return user
