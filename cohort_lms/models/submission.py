"""
Submission Model

Assignments and quiz attempts share one table, distinguished by ``kind``.
Assignment rows carry a file or link; quiz rows carry answers and a raw
score out of ``total_questions``.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cohort_lms.core.database import Base
from cohort_lms.core.json_column import NormalizedJSON
from cohort_lms.models.enums import SubmissionKind, SubmissionStatus

if TYPE_CHECKING:
    from cohort_lms.models.user import User
    from cohort_lms.models.week import Week


class Submission(Base):
    """
    Submission model.

    Attributes:
        kind: ASSIGNMENT or QUIZ.
        is_on_time: Fixed at submission time against the content deadline.
        answers: Quiz answers keyed by question index.
        total_questions: Quiz question count at grading time.
        score: 0-100 for assignments, raw points for quizzes.
        status: Review status; REJECTED never counts toward completion.
    """

    __tablename__ = "submissions"
    __table_args__ = (
        Index(
            "uq_submissions_quiz_user_week",
            "user_id",
            "week_id",
            unique=True,
            postgresql_where=text("kind = 'QUIZ'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
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
    kind: Mapped[SubmissionKind] = mapped_column(
        Enum(SubmissionKind, name="submission_kind", create_constraint=True),
        nullable=False,
    )

    # Assignment payload
    file_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    github_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_on_time: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Quiz payload
    answers: Mapped[dict[str, Any]] = mapped_column(
        NormalizedJSON(dict),
        default=dict,
        nullable=False,
    )
    total_questions: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Review
    score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[SubmissionStatus] = mapped_column(
        Enum(SubmissionStatus, name="submission_status", create_constraint=True),
        default=SubmissionStatus.SUBMITTED,
        nullable=False,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="submissions",
        foreign_keys=[user_id],
        lazy="selectin",
    )
    week: Mapped["Week"] = relationship(
        "Week",
        lazy="selectin",
    )

    @property
    def is_quiz(self) -> bool:
        return self.kind == SubmissionKind.QUIZ

    def __repr__(self) -> str:
        return f"<Submission(id={self.id}, kind={self.kind}, status={self.status})>"
