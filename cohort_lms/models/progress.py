"""
Progress Model

The ledger row for one (student, week) pair.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cohort_lms.core.database import Base

if TYPE_CHECKING:
    from cohort_lms.models.user import User
    from cohort_lms.models.week import Week


class Progress(Base):
    """
    Progress ledger row.

    ``points`` always equals the sum of the four component columns. Rows are
    created lazily on first interaction and start locked, except for the
    first course week which is unlocked at registration.

    Attributes:
        video_progress: Highest reported watch percentage (0-100).
        video_points: Video component, either 0 or the week's video budget.
        assignment_points: Graded assignment component.
        quiz_points: Quiz component (raw auto-grade or admin rescale).
        bonus_points: On-time bonus for the graded assignment.
        is_locked: Week not yet accessible to the student.
    """

    __tablename__ = "progress"
    __table_args__ = (
        UniqueConstraint("user_id", "week_id", name="uq_progress_user_week"),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    week_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("weeks.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    # Video
    video_watched: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    video_progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    video_watched_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Graded components
    assignment_submitted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    assignment_submitted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    quiz_submitted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Points
    video_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    assignment_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    quiz_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    bonus_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Completion / gating
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    is_locked: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    unlocked_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="progress_records",
    )
    week: Mapped["Week"] = relationship(
        "Week",
        lazy="selectin",
    )

    @property
    def component_total(self) -> int:
        return self.video_points + self.assignment_points + self.quiz_points + self.bonus_points

    def __repr__(self) -> str:
        return (
            f"<Progress(user_id={self.user_id}, week_id={self.week_id}, "
            f"points={self.points}, completed={self.completed})>"
        )
