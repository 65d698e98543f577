"""
Phase Model

An ordered block of curriculum weeks with an advancement threshold.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cohort_lms.core.database import Base

if TYPE_CHECKING:
    from cohort_lms.models.week import Week


class Phase(Base):
    """
    Phase model.

    Attributes:
        id: Integer primary key.
        number: Position of the phase in the course (1-based, unique).
        title: Display title.
        start_week: First week number covered by the phase.
        end_week: Last week number covered by the phase.
        required_points_percentage: Share of possible points needed to advance.
    """

    __tablename__ = "phases"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    number: Mapped[int] = mapped_column(
        Integer,
        unique=True,
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
    start_week: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    end_week: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    color: Mapped[str] = mapped_column(
        String(16),
        default="#3B82F6",
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    required_points_percentage: Mapped[int] = mapped_column(
        Integer,
        default=80,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    weeks: Mapped[list["Week"]] = relationship(
        "Week",
        back_populates="phase",
        order_by="Week.week_number",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Phase(number={self.number}, title={self.title})>"
