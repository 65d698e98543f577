"""
User Model

Students and admins. The points/phase/week columns are caches of the
progress ledger and are rewritten after every point-affecting mutation.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Enum, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cohort_lms.core.database import Base
from cohort_lms.models.enums import UserRole

if TYPE_CHECKING:
    from cohort_lms.models.certificate import Certificate
    from cohort_lms.models.progress import Progress
    from cohort_lms.models.submission import Submission


class User(Base):
    """
    User model representing students and admins.

    Attributes:
        id: UUID primary key.
        email: Unique email address, indexed for fast lookups.
        password_hash: bcrypt hash.
        full_name: Display name printed on certificates.
        role: STUDENT or ADMIN.
        current_phase: Phase number the student is working in.
        current_week: Week number of the student's frontier.
        total_points: Cached SUM(progress.points).
        is_active: Deactivated accounts cannot authenticate.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", create_constraint=True),
        default=UserRole.STUDENT,
        nullable=False,
    )
    current_phase: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
    )
    current_week: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
    )
    total_points: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    progress_records: Mapped[list["Progress"]] = relationship(
        "Progress",
        back_populates="user",
        passive_deletes=True,
    )
    submissions: Mapped[list["Submission"]] = relationship(
        "Submission",
        back_populates="user",
        foreign_keys="Submission.user_id",
        passive_deletes=True,
    )
    certificate: Mapped[Optional["Certificate"]] = relationship(
        "Certificate",
        back_populates="user",
        uselist=False,
        passive_deletes=True,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
