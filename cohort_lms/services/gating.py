"""
Unlock / Gating Rules

Pure decisions over curriculum structure and ledger state: per-phase
standing, the course week order, and which single week (if any) becomes
accessible next. ``gating_service`` applies these decisions to the database.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol, Sequence

from cohort_lms.services.scoring import round_half_up, safe_ratio


class WeekLike(Protocol):
    id: int
    week_number: int
    max_points: int


class PhaseLike(Protocol):
    number: int
    title: str
    required_points_percentage: int
    weeks: Sequence[Any]


class LedgerRow(Protocol):
    points: int
    completed: bool
    is_locked: bool


@dataclass(frozen=True)
class PhaseStanding:
    """Aggregated ledger state for one phase."""
    phase_number: int
    total_weeks: int
    completed_weeks: int
    possible_points: int
    earned_points: int
    required_percentage: int

    @property
    def percentage(self) -> float:
        return safe_ratio(self.earned_points, self.possible_points) * 100

    @property
    def progress_percentage(self) -> int:
        return round_half_up(self.percentage)

    @property
    def all_weeks_completed(self) -> bool:
        return self.completed_weeks == self.total_weeks

    @property
    def requirements_met(self) -> bool:
        return self.all_weeks_completed and self.percentage >= self.required_percentage

    def missing_requirements(self) -> list[str]:
        missing = []
        if not self.all_weeks_completed:
            missing.append(
                f"Complete all weeks in phase {self.phase_number} "
                f"({self.completed_weeks}/{self.total_weeks} completed)"
            )
        if self.percentage < self.required_percentage:
            missing.append(
                f"Earn at least {self.required_percentage}% of phase {self.phase_number} points "
                f"(currently {self.progress_percentage}%)"
            )
        return missing


@dataclass(frozen=True)
class UnlockDecision:
    """
    Result of an unlock evaluation.

    At most one week is ever returned in ``unlock_week``.
    """
    unlock_week: Optional[Any] = None
    awaiting_approval: bool = False
    course_complete: bool = False
    message: str = ""
    standing: Optional[PhaseStanding] = None
    details: dict = field(default_factory=dict)


def sorted_phases(phases: Sequence[PhaseLike]) -> list[PhaseLike]:
    return sorted(phases, key=lambda p: p.number)


def sorted_weeks(phase: PhaseLike) -> list[WeekLike]:
    return sorted(phase.weeks, key=lambda w: w.week_number)


def course_order(phases: Sequence[PhaseLike]) -> list[tuple[PhaseLike, WeekLike]]:
    """Every week of the course ordered by (phase number, week number)."""
    return [(phase, week) for phase in sorted_phases(phases) for week in sorted_weeks(phase)]


def first_week(phases: Sequence[PhaseLike]) -> Optional[WeekLike]:
    order = course_order(phases)
    return order[0][1] if order else None


def next_phase(phases: Sequence[PhaseLike], number: int) -> Optional[PhaseLike]:
    later = [p for p in sorted_phases(phases) if p.number > number]
    return later[0] if later else None


def phase_standing(phase: PhaseLike, progress_by_week: Mapping[int, LedgerRow]) -> PhaseStanding:
    """
    Compute the standing of a student in a phase.

    Possible points are the sum of each week's ``max_points``; weeks without
    a ledger row count as incomplete with 0 points.
    """
    weeks = list(phase.weeks)
    completed = 0
    earned = 0
    for week in weeks:
        row = progress_by_week.get(week.id)
        if row is None:
            continue
        earned += row.points or 0
        if row.completed:
            completed += 1
    return PhaseStanding(
        phase_number=phase.number,
        total_weeks=len(weeks),
        completed_weeks=completed,
        possible_points=sum(w.max_points for w in weeks),
        earned_points=earned,
        required_percentage=phase.required_points_percentage,
    )


def is_unlocked(row: Optional[LedgerRow]) -> bool:
    return row is not None and not row.is_locked


def decide_unlock(
    phases: Sequence[PhaseLike],
    progress_by_week: Mapping[int, LedgerRow],
    current_phase: int,
    certificate_issued: bool = False,
) -> UnlockDecision:
    """
    Decide the next gating step for a student.

    The candidate is the first locked week in course order. Inside a phase
    it opens once its immediate predecessor is completed. When the
    predecessor closes a phase, the student is only flagged as awaiting
    admin approval; nothing is unlocked here. With no locked week left, a
    met final phase standing signals the end of the course.
    """
    order = course_order(phases)
    if not order:
        return UnlockDecision(message="No curriculum weeks are configured")

    for index, (phase, week) in enumerate(order):
        if is_unlocked(progress_by_week.get(week.id)):
            continue

        if index == 0:
            return UnlockDecision(unlock_week=week, message=f"Week {week.week_number} unlocked")

        prev_phase, prev_week = order[index - 1]
        prev_row = progress_by_week.get(prev_week.id)
        if prev_row is None or not prev_row.completed:
            return UnlockDecision(
                message=f"Complete week {prev_week.week_number} to unlock the next week",
            )

        if prev_phase.number == phase.number:
            return UnlockDecision(unlock_week=week, message=f"Week {week.week_number} unlocked")

        standing = phase_standing(prev_phase, progress_by_week)
        if standing.requirements_met and current_phase > prev_phase.number:
            # Approval already granted for this boundary
            return UnlockDecision(unlock_week=week, message=f"Week {week.week_number} unlocked")
        if standing.requirements_met:
            return UnlockDecision(
                awaiting_approval=True,
                standing=standing,
                message=(
                    f"Phase {prev_phase.number} requirements met. "
                    "Waiting for admin approval to start the next phase."
                ),
            )
        return UnlockDecision(
            standing=standing,
            message=f"Phase {prev_phase.number} requirements not met yet",
            details={"missing_requirements": standing.missing_requirements()},
        )

    last_phase = order[-1][0]
    standing = phase_standing(last_phase, progress_by_week)
    if not standing.requirements_met:
        return UnlockDecision(
            standing=standing,
            message="All weeks are unlocked",
            details={"missing_requirements": standing.missing_requirements()},
        )
    if certificate_issued:
        return UnlockDecision(course_complete=True, standing=standing, message="Course completed")
    return UnlockDecision(
        awaiting_approval=True,
        course_complete=True,
        standing=standing,
        message="Final phase requirements met. Waiting for admin approval to issue the certificate.",
    )
