"""
Week Model

A single curriculum week and its point budget.
"""

from datetime import date
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cohort_lms.core.database import Base

if TYPE_CHECKING:
    from cohort_lms.models.content import Content
    from cohort_lms.models.phase import Phase


class Week(Base):
    """
    Week model.

    ``max_points`` always equals ``video_points + assignment_points``.
    Quiz points are rescaled onto the assignment budget and have no
    separate allocation.
    """

    __tablename__ = "weeks"
    __table_args__ = (
        UniqueConstraint("phase_id", "week_number", name="uq_weeks_phase_week_number"),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    phase_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("phases.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    week_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    start_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    end_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )
    max_points: Mapped[int] = mapped_column(
        Integer,
        default=100,
        nullable=False,
    )
    video_points: Mapped[int] = mapped_column(
        Integer,
        default=40,
        nullable=False,
    )
    assignment_points: Mapped[int] = mapped_column(
        Integer,
        default=60,
        nullable=False,
    )
    order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    # Relationships
    phase: Mapped["Phase"] = relationship(
        "Phase",
        back_populates="weeks",
        lazy="selectin",
    )
    content: Mapped[Optional["Content"]] = relationship(
        "Content",
        back_populates="week",
        uselist=False,
        lazy="selectin",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Week(week_number={self.week_number}, phase_id={self.phase_id})>"
