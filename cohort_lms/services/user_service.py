"""
User Service

Account creation, authentication and admin account management.
"""

import logging
import uuid
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_lms.core.security import hash_password, verify_password
from cohort_lms.models.certificate import Certificate
from cohort_lms.models.enums import UserRole
from cohort_lms.models.submission import Submission
from cohort_lms.models.user import User
from cohort_lms.services import gating, ledger_service


logger = logging.getLogger(__name__)


async def get_user_by_email(email: str, db: AsyncSession) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_user(user_id: uuid.UUID, db: AsyncSession) -> User:
    """
    Raises:
        HTTPException: 404 if the user does not exist.
    """
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


async def create_user(
    email: str,
    password: str,
    full_name: str,
    db: AsyncSession,
    role: UserRole = UserRole.STUDENT,
) -> User:
    """
    Create an account. Students get the first course week unlocked.

    Raises:
        HTTPException: 409 if the email is already registered.
    """
    if await get_user_by_email(email, db):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    user = User(
        email=email.lower(),
        password_hash=hash_password(password),
        full_name=full_name,
        role=role,
        current_phase=1,
        current_week=1,
        total_points=0,
        is_active=True,
    )
    db.add(user)
    await db.flush()

    if role == UserRole.STUDENT:
        first = gating.first_week(await ledger_service.load_phases(db))
        if first is not None:
            await ledger_service.unlock_week(user.id, first, db)
            user.current_week = first.week_number

    await db.flush()
    await db.refresh(user)
    logger.info("Created %s account %s", role.value, user.email)
    return user


async def authenticate(email: str, password: str, db: AsyncSession) -> User:
    """
    Verify credentials and stamp the login time.

    Raises:
        HTTPException: 401 on bad credentials, 403 if deactivated.
    """
    user = await get_user_by_email(email, db)
    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )
    user.last_login_at = ledger_service.utcnow()
    return user


async def set_active(user_id: uuid.UUID, db: AsyncSession, is_active: Optional[bool] = None) -> User:
    """
    Activate or deactivate a student; flips the flag when ``is_active`` is None.

    Raises:
        HTTPException: 403 for admin accounts.
    """
    user = await get_user(user_id, db)
    if user.role == UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot change the status of an admin account",
        )
    user.is_active = (not user.is_active) if is_active is None else is_active
    await db.flush()
    logger.info("User %s active=%s", user.email, user.is_active)
    return user


async def delete_user(user_id: uuid.UUID, db: AsyncSession) -> None:
    """
    Raises:
        HTTPException: 403 for admin accounts.
        HTTPException: 409 if the user has submissions or a certificate.
    """
    user = await get_user(user_id, db)
    if user.role == UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot delete an admin account",
        )

    submissions = await db.scalar(select(func.count(Submission.id)).where(Submission.user_id == user.id))
    certificates = await db.scalar(select(func.count(Certificate.id)).where(Certificate.user_id == user.id))
    if submissions or certificates:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot delete a user with submissions or a certificate. Deactivate the account instead.",
        )

    await db.delete(user)
    await db.flush()
    logger.info("Deleted user %s", user.email)
