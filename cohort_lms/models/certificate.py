"""
Certificate Model

Course completion certificate, at most one per student.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cohort_lms.core.database import Base

if TYPE_CHECKING:
    from cohort_lms.models.user import User


class Certificate(Base):
    """
    Certificate model.

    The point and percentage columns are a snapshot taken at issuance.

    Attributes:
        id: UUID primary key.
        user_id: Owning student (unique).
        certificate_id: Public identifier ``<prefix>-<ms timestamp>-<user id>``.
        file_path: Relative URL of the rendered PDF.
        is_email_sent: Whether delivery by email succeeded.
    """

    __tablename__ = "certificates"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    certificate_id: Mapped[str] = mapped_column(
        String(128),
        unique=True,
        index=True,
        nullable=False,
    )
    file_path: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    issued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    total_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completion_percentage: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    course_duration_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_email_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_sent_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="certificate",
    )

    def __repr__(self) -> str:
        return f"<Certificate(certificate_id={self.certificate_id}, user_id={self.user_id})>"
