"""
Gating Service

Applies unlock decisions to the ledger and handles admin phase approval.
"""

import logging
import uuid
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_lms.core.database import on_commit
from cohort_lms.models.enums import UserRole
from cohort_lms.models.user import User
from cohort_lms.services import certificate_service, gating, ledger_service
from cohort_lms.services.gating import UnlockDecision
from cohort_lms.services.notification_service import PHASE_APPROVED, WEEK_UNLOCKED, manager


logger = logging.getLogger(__name__)


async def evaluate_unlocks(student_id: uuid.UUID, db: AsyncSession) -> UnlockDecision:
    """
    Re-evaluate what the student may access next and apply it.

    Opens at most one week. Phase boundaries only produce an
    awaiting-approval signal.

    Args:
        student_id: Student to evaluate.
        db: Database session.

    Returns:
        UnlockDecision describing what happened.
    """
    student = await ledger_service.lock_student(student_id, db)
    phases = await ledger_service.load_phases(db)
    rows = await ledger_service.progress_by_week(student.id, db)
    certificate = await certificate_service.get_certificate_for_user(student.id, db)

    decision = gating.decide_unlock(
        phases,
        rows,
        current_phase=student.current_phase,
        certificate_issued=certificate is not None,
    )

    week = decision.unlock_week
    if week is not None:
        await ledger_service.unlock_week(student.id, week, db)
        student.current_week = max(student.current_week, week.week_number)
        on_commit(
            db,
            manager.send_to_user,
            student.id,
            WEEK_UNLOCKED,
            {"week_id": week.id, "week_number": week.week_number},
        )
    elif decision.awaiting_approval:
        logger.info("User %s awaiting phase approval: %s", student.id, decision.message)

    return decision


def describe_decision(decision: UnlockDecision) -> dict[str, Any]:
    """Serializable summary of an unlock decision."""
    week = decision.unlock_week
    return {
        "message": decision.message,
        "unlocked": week is not None,
        "unlocked_week_id": week.id if week is not None else None,
        "unlocked_week_number": week.week_number if week is not None else None,
        "awaiting_approval": decision.awaiting_approval,
        "course_complete": decision.course_complete,
        "missing_requirements": decision.details.get("missing_requirements", []),
    }


async def approve_phase(student_id: uuid.UUID, db: AsyncSession) -> dict[str, Any]:
    """
    Approve a student's advance out of their current phase.

    The phase standing is recomputed from the ledger; nothing the client
    sends is trusted. After the final phase, the certificate is issued.

    Raises:
        HTTPException: 404 if the student does not exist.
        HTTPException: 400 if the user is not a student, has no active
            phase, or has not met the phase requirements.
    """
    student = await ledger_service.lock_student(student_id, db)
    if student.role != UserRole.STUDENT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only students can be approved for phase advancement",
        )

    phases = await ledger_service.load_phases(db)
    phase = next((p for p in phases if p.number == student.current_phase), None)
    if phase is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Student has no active phase",
        )

    rows = await ledger_service.progress_by_week(student.id, db)
    standing = gating.phase_standing(phase, rows)
    if not standing.requirements_met:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": f"Student has not met the requirements of phase {phase.number}",
                "missing_requirements": standing.missing_requirements(),
            },
        )

    following = gating.next_phase(phases, phase.number)
    if following is None:
        certificate = await certificate_service.issue_if_eligible(student, db)
        logger.info("Final phase approved for user %s", student.id)
        return {
            "message": "Course completed. Certificate issued.",
            "current_phase": student.current_phase,
            "current_week": student.current_week,
            "unlocked_week_number": None,
            "certificate_id": certificate.certificate_id if certificate else None,
        }

    student.current_phase = following.number
    student.current_week = phase.end_week + 1

    unlocked_number = None
    weeks = gating.sorted_weeks(following)
    if weeks:
        await ledger_service.unlock_week(student.id, weeks[0], db)
        unlocked_number = weeks[0].week_number

    logger.info(
        "Approved user %s into phase %s (week %s)",
        student.id,
        following.number,
        student.current_week,
    )
    on_commit(
        db,
        manager.send_to_user,
        student.id,
        PHASE_APPROVED,
        {"phase": following.number, "week_number": unlocked_number},
    )
    return {
        "message": f"Phase {following.number} unlocked",
        "current_phase": student.current_phase,
        "current_week": student.current_week,
        "unlocked_week_number": unlocked_number,
        "certificate_id": None,
    }


async def check_unlock_for(user: User, db: AsyncSession) -> dict[str, Any]:
    decision = await evaluate_unlocks(user.id, db)
    return describe_decision(decision)
