"""
Certificate Schemas
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CertificateResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    certificate_id: str
    issued_at: datetime
    total_points: int
    completion_percentage: int
    course_duration_days: int
    is_email_sent: bool
    email_sent_at: Optional[datetime] = None
    download_url: str = "/api/v1/student/certificate/download"

    model_config = {"from_attributes": True}
