"""
Certificate Service

Eligibility checking, PDF rendering and one-shot issuance of course
completion certificates.
"""

import logging
import math
import os
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cohort_lms.core.config import settings
from cohort_lms.core.database import get_session_maker, on_commit
from cohort_lms.models.certificate import Certificate
from cohort_lms.models.progress import Progress
from cohort_lms.models.user import User
from cohort_lms.models.week import Week
from cohort_lms.services import email_service, gating, ledger_service
from cohort_lms.services.notification_service import CERTIFICATE_ISSUED, manager
from cohort_lms.services.scoring import round_half_up, safe_ratio


logger = logging.getLogger(__name__)


def build_certificate_id(user_id, issued_at: datetime) -> str:
    """Public identifier: ``<prefix>-<epoch milliseconds>-<user id>``."""
    return f"{settings.CERTIFICATE_PREFIX}-{int(issued_at.timestamp() * 1000)}-{user_id}"


def course_duration_days(created_at: Optional[datetime], now: datetime) -> int:
    """Whole days since enrolment, rounded up."""
    if created_at is None:
        return 0
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return math.ceil(abs((now - created_at).total_seconds()) / 86400)


def generate_certificate_pdf(
    certificate_id: str,
    full_name: str,
    total_points: int,
    completion_percentage: int,
    issued_at: datetime,
) -> str:
    """
    Render a certificate PDF using ReportLab.

    Returns:
        Filesystem path of the generated PDF.
    """
    os.makedirs(settings.CERTIFICATES_DIR, exist_ok=True)
    filepath = os.path.join(settings.CERTIFICATES_DIR, f"{certificate_id}.pdf")

    c = canvas.Canvas(filepath, pagesize=landscape(letter))
    width, height = landscape(letter)

    # Border
    c.setStrokeColorRGB(0.12, 0.25, 0.69)
    c.setLineWidth(5)
    c.rect(0.5 * inch, 0.5 * inch, width - 1 * inch, height - 1 * inch)

    c.setFont("Helvetica-Bold", 40)
    c.drawCentredString(width / 2, height - 2.2 * inch, "Certificate of Completion")

    c.setFont("Helvetica", 20)
    c.drawCentredString(width / 2, height - 2.9 * inch, "This is to certify that")

    c.setFont("Helvetica-Bold", 30)
    c.drawCentredString(width / 2, height - 3.7 * inch, full_name)

    c.setFont("Helvetica", 20)
    c.drawCentredString(width / 2, height - 4.4 * inch, "has successfully completed")

    c.setFont("Helvetica-Bold", 25)
    c.drawCentredString(width / 2, height - 5.1 * inch, settings.COURSE_TITLE)

    c.setFont("Helvetica", 14)
    c.drawCentredString(
        width / 2,
        height - 5.7 * inch,
        f"Total points: {total_points}    Completion: {completion_percentage}%",
    )

    c.setFont("Helvetica", 12)
    c.drawString(1 * inch, 1 * inch, f"Date: {issued_at.strftime('%B %d, %Y')}")
    c.drawRightString(width - 1 * inch, 1 * inch, f"Certificate ID: {certificate_id}")

    c.save()
    return filepath


def ensure_certificate_file(certificate: Certificate, full_name: str) -> str:
    """Path of the certificate PDF, re-rendering it if the file is gone."""
    if certificate.file_path and os.path.exists(certificate.file_path):
        return certificate.file_path
    logger.warning("Certificate file missing for %s, regenerating", certificate.certificate_id)
    certificate.file_path = generate_certificate_pdf(
        certificate.certificate_id,
        full_name,
        certificate.total_points,
        certificate.completion_percentage,
        certificate.issued_at,
    )
    return certificate.file_path


async def get_certificate_for_user(user_id, db: AsyncSession) -> Optional[Certificate]:
    result = await db.execute(select(Certificate).where(Certificate.user_id == user_id))
    return result.scalar_one_or_none()


async def check_eligibility(user: User, db: AsyncSession) -> Tuple[bool, List[str]]:
    """
    Check whether a student has met every phase's requirements.

    Returns:
        Tuple of (is_eligible, list_of_missing_requirements).
    """
    phases = await ledger_service.load_phases(db)
    if not phases:
        return False, ["Course has no phases"]

    rows = await ledger_service.progress_by_week(user.id, db)
    missing: list[str] = []
    for phase in gating.sorted_phases(phases):
        missing.extend(gating.phase_standing(phase, rows).missing_requirements())
    return not missing, missing


async def completion_stats(user: User, db: AsyncSession) -> Tuple[int, int]:
    """(completed weeks, total weeks) for a student."""
    total_weeks = await db.scalar(select(func.count(Week.id)))
    completed_weeks = await db.scalar(
        select(func.count(Progress.id)).where(
            Progress.user_id == user.id,
            Progress.completed.is_(True),
        )
    )
    return int(completed_weeks or 0), int(total_weeks or 0)


async def deliver_certificate_email(
    certificate_id: str,
    to_email: str,
    full_name: str,
    total_points: int,
    pdf_path: Optional[str],
) -> bool:
    """
    Email an issued certificate and record the delivery.

    Runs after the issuing transaction has committed, so the flag is
    written in a transaction of its own.
    """
    sent = await email_service.send_certificate_email(
        to_email=to_email,
        full_name=full_name,
        certificate_id=certificate_id,
        total_points=total_points,
        pdf_path=pdf_path,
    )
    if not sent:
        logger.error("Certificate %s issued but email delivery failed", certificate_id)
        return False

    async with get_session_maker()() as session:
        await session.execute(
            update(Certificate)
            .where(Certificate.certificate_id == certificate_id)
            .values(is_email_sent=True, email_sent_at=datetime.now(timezone.utc))
        )
        await session.commit()
    return True


async def issue_if_eligible(student: User, db: AsyncSession) -> Optional[Certificate]:
    """
    Issue the student's certificate exactly once.

    Flow:
    1. Return the existing certificate if there is one.
    2. Return None when not every phase requirement is met.
    3. Snapshot points, completion and course duration.
    4. Render the PDF and persist the record.
    5. After the commit, email it and notify the student; a failed
       email only leaves ``is_email_sent`` false.

    The caller must hold the student row lock so two concurrent requests
    cannot both pass step 1.
    """
    existing = await get_certificate_for_user(student.id, db)
    if existing:
        return existing

    is_eligible, missing = await check_eligibility(student, db)
    if not is_eligible:
        logger.info("User %s not eligible for certificate: %s", student.id, missing)
        return None

    issued_at = datetime.now(timezone.utc)
    completed_weeks, total_weeks = await completion_stats(student, db)
    completion_percentage = round_half_up(safe_ratio(completed_weeks, total_weeks) * 100)
    certificate_id = build_certificate_id(student.id, issued_at)

    pdf_path = generate_certificate_pdf(
        certificate_id=certificate_id,
        full_name=student.full_name,
        total_points=student.total_points,
        completion_percentage=completion_percentage,
        issued_at=issued_at,
    )

    certificate = Certificate(
        user_id=student.id,
        certificate_id=certificate_id,
        file_path=pdf_path,
        issued_at=issued_at,
        total_points=student.total_points,
        completion_percentage=completion_percentage,
        course_duration_days=course_duration_days(student.created_at, issued_at),
    )
    db.add(certificate)
    await db.flush()
    logger.info("Issued certificate %s to user %s", certificate_id, student.id)

    on_commit(
        db,
        deliver_certificate_email,
        certificate_id=certificate_id,
        to_email=student.email,
        full_name=student.full_name,
        total_points=student.total_points,
        pdf_path=pdf_path,
    )
    on_commit(
        db,
        manager.send_to_user,
        student.id,
        CERTIFICATE_ISSUED,
        {"certificate_id": certificate_id},
    )
    return certificate


async def claim_certificate(student: User, db: AsyncSession) -> Certificate:
    """
    Student-initiated issuance.

    Raises:
        HTTPException: 400 with the missing requirements if not eligible.
    """
    locked = await ledger_service.lock_student(student.id, db)
    certificate = await issue_if_eligible(locked, db)
    if certificate is None:
        _, missing = await check_eligibility(locked, db)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "You must complete all phases to earn a certificate",
                "missing_requirements": missing,
            },
        )
    return certificate


async def get_own_certificate(user: User, db: AsyncSession) -> Certificate:
    """
    Raises:
        HTTPException: 404 if the student has no certificate yet.
    """
    certificate = await get_certificate_for_user(user.id, db)
    if not certificate:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Certificate not found",
        )
    return certificate
