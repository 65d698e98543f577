"""
Content Model

Instructional material attached one-to-one to a week.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cohort_lms.core.database import Base
from cohort_lms.core.json_column import NormalizedJSON

if TYPE_CHECKING:
    from cohort_lms.models.week import Week


class Content(Base):
    """
    Week content.

    Attributes:
        multiple_choice_questions: List of
            ``{"question", "options", "correct_answer", "points"}`` records.
        resources: List of ``{"title", "url", "type"}`` records.
        assignment_deadline: Submissions after this instant are late.
    """

    __tablename__ = "contents"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    week_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("weeks.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    video_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    video_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    video_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    video2_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    video2_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    video2_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    multiple_choice_questions: Mapped[list[dict[str, Any]]] = mapped_column(
        NormalizedJSON(list),
        default=list,
        nullable=False,
    )
    resources: Mapped[list[dict[str, Any]]] = mapped_column(
        NormalizedJSON(list),
        default=list,
        nullable=False,
    )

    assignment_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    assignment_deadline: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    grading_criteria: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    is_published: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    week: Mapped["Week"] = relationship(
        "Week",
        back_populates="content",
    )

    def __repr__(self) -> str:
        return f"<Content(week_id={self.week_id}, published={self.is_published})>"
