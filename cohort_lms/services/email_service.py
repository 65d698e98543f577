"""
Email Service

Sends certificate emails over SMTP. Delivery failures are logged and
reported as False, never raised.
"""

import logging
import os
import smtplib
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from cohort_lms.core.config import settings


logger = logging.getLogger(__name__)


def get_certificate_email_html(full_name: str, certificate_id: str, total_points: int) -> str:
    """Generate HTML content for the certificate email."""
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <style>
            body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background-color: #f5f5f5; }}
            .container {{ max-width: 600px; margin: 40px auto; background: white; border-radius: 12px; overflow: hidden; }}
            .header {{ background: #1e40af; padding: 32px; text-align: center; color: white; }}
            .content {{ padding: 32px; color: #374151; line-height: 1.6; }}
            .id {{ font-family: monospace; color: #1e40af; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header"><h1>Congratulations!</h1></div>
            <div class="content">
                <p>Hi {full_name},</p>
                <p>You have completed <strong>{settings.COURSE_TITLE}</strong> with {total_points} points.</p>
                <p>Your certificate is attached to this email.</p>
                <p>Certificate ID: <span class="id">{certificate_id}</span></p>
            </div>
        </div>
    </body>
    </html>
    """


def get_certificate_email_text(full_name: str, certificate_id: str, total_points: int) -> str:
    """Generate plain text content for the certificate email."""
    return (
        f"Hi {full_name},\n\n"
        f"You have completed {settings.COURSE_TITLE} with {total_points} points.\n"
        f"Your certificate is attached to this email.\n\n"
        f"Certificate ID: {certificate_id}\n"
    )


def _send_message(to_email: str, msg: MIMEMultipart) -> None:
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        server.starttls()
        server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.sendmail(settings.EMAIL_FROM_ADDRESS, to_email, msg.as_string())


def build_certificate_message(
    to_email: str,
    full_name: str,
    certificate_id: str,
    total_points: int,
    pdf_path: Optional[str] = None,
) -> MIMEMultipart:
    msg = MIMEMultipart("mixed")
    msg["Subject"] = f"Your {settings.COURSE_TITLE} certificate"
    msg["From"] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
    msg["To"] = to_email

    body = MIMEMultipart("alternative")
    body.attach(MIMEText(get_certificate_email_text(full_name, certificate_id, total_points), "plain"))
    body.attach(MIMEText(get_certificate_email_html(full_name, certificate_id, total_points), "html"))
    msg.attach(body)

    if pdf_path and os.path.exists(pdf_path):
        with open(pdf_path, "rb") as f:
            attachment = MIMEApplication(f.read(), _subtype="pdf")
        attachment.add_header(
            "Content-Disposition",
            "attachment",
            filename=f"{certificate_id}.pdf",
        )
        msg.attach(attachment)

    return msg


async def send_certificate_email(
    to_email: str,
    full_name: str,
    certificate_id: str,
    total_points: int,
    pdf_path: Optional[str] = None,
) -> bool:
    """
    Email a certificate with the PDF attached.

    Args:
        to_email: Recipient email address.
        full_name: Student name for personalization.
        certificate_id: Public certificate identifier.
        total_points: Points snapshot printed in the body.
        pdf_path: Filesystem path of the rendered PDF.

    Returns:
        bool: True if the email was sent (or logged in dev mode).
    """
    # In development mode without SMTP credentials, just log
    if settings.is_development and not settings.SMTP_USER:
        logger.info(f"[DEV MODE] Certificate {certificate_id} for {to_email} ({pdf_path})")
        return True

    try:
        msg = build_certificate_message(to_email, full_name, certificate_id, total_points, pdf_path)
        await run_in_threadpool(_send_message, to_email, msg)
        logger.info(f"Certificate email sent to {to_email}")
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send certificate email to {to_email}: {e}")
        return False
