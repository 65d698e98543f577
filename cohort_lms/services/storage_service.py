"""
Storage Service

Persists uploaded assignment files under the configured upload directory.
"""

import logging
import os
import re
import uuid
from dataclasses import dataclass

from fastapi import HTTPException, UploadFile, status

from cohort_lms.core.config import settings


logger = logging.getLogger(__name__)


ALLOWED_CONTENT_TYPES = {
    "application/pdf",
    "application/zip",
    "application/x-zip-compressed",
    "image/jpeg",
    "image/png",
    "image/gif",
    "text/plain",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

ALLOWED_EXTENSIONS = {".pdf", ".zip", ".jpg", ".jpeg", ".png", ".gif", ".txt", ".doc", ".docx"}

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class StoredFile:
    path: str
    original_name: str
    size: int


def sanitize_filename(name: str) -> str:
    """Keep a safe basename: letters, digits, dot, dash and underscore."""
    base = os.path.basename(name or "upload")
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "_", base).strip("._")
    return cleaned or "upload"


def validate_upload(upload: UploadFile) -> None:
    """
    Raises:
        HTTPException: 400 if the file type is not allowed.
    """
    extension = os.path.splitext(upload.filename or "")[1].lower()
    if upload.content_type not in ALLOWED_CONTENT_TYPES or extension not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Allowed: PDF, ZIP, images, text and Word documents.",
        )


async def save_upload(upload: UploadFile, subdir: str = "") -> StoredFile:
    """
    Save an upload under a unique name.

    Raises:
        HTTPException: 400 for a disallowed type, 413 when over the size limit.
    """
    validate_upload(upload)

    directory = os.path.join(settings.UPLOAD_DIR, subdir) if subdir else settings.UPLOAD_DIR
    os.makedirs(directory, exist_ok=True)
    filename = f"{uuid.uuid4().hex}-{sanitize_filename(upload.filename)}"
    path = os.path.join(directory, filename)

    size = 0
    with open(path, "wb") as out:
        while chunk := await upload.read(CHUNK_SIZE):
            size += len(chunk)
            if size > settings.max_upload_bytes:
                out.close()
                os.remove(path)
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail=f"File exceeds the {settings.MAX_UPLOAD_SIZE_MB} MB limit",
                )
            out.write(chunk)

    logger.info("Stored upload %s (%d bytes)", path, size)
    return StoredFile(path=path, original_name=upload.filename or filename, size=size)


def remove_file(path: str | None) -> None:
    """Delete a stored file if it still exists."""
    if path and os.path.exists(path):
        os.remove(path)
