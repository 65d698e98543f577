"""
Progress Schemas

Pydantic models for ledger rows, video tracking, standings and dashboards.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from cohort_lms.schemas.certificate import CertificateResponse
from cohort_lms.schemas.curriculum import ContentResponse, PhaseResponse, WeekResponse
from cohort_lms.schemas.submission import SubmissionResponse
from cohort_lms.schemas.user import UserResponse


class VideoProgressUpdate(BaseModel):
    """Schema for a video watch report."""

    week_id: int = Field(..., description="Week the video belongs to")
    progress: float = Field(default=0, description="Watched percentage; clamped to 0-100")
    completed: bool = Field(default=False, description="Player reported the video as finished")


class ProgressResponse(BaseModel):
    """Schema for a ledger row."""

    week_id: int
    video_watched: bool
    video_progress: int
    assignment_submitted: bool
    quiz_submitted: bool
    video_points: int
    assignment_points: int
    quiz_points: int
    bonus_points: int
    points: int
    completed: bool
    completed_at: Optional[datetime] = None
    is_locked: bool
    unlocked_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UnlockResult(BaseModel):
    message: str
    unlocked: bool
    unlocked_week_id: Optional[int] = None
    unlocked_week_number: Optional[int] = None
    awaiting_approval: bool
    course_complete: bool
    missing_requirements: list[str] = []


class VideoProgressResult(BaseModel):
    progress: ProgressResponse
    total_points: int
    unlock: UnlockResult


class PhaseRef(BaseModel):
    id: int
    number: int
    title: str
    color: str


class PhaseStandingResponse(BaseModel):
    phase: PhaseRef
    total_weeks: int
    completed_weeks: int
    total_possible_points: int
    earned_points: int
    progress_percentage: int
    required_percentage: int
    is_completed: bool


class WeekStanding(BaseModel):
    week_id: int
    week_number: int
    title: str
    max_points: int
    points: int
    completed: bool
    is_locked: bool


class PhaseProgressResponse(PhaseStandingResponse):
    weeks: list[WeekStanding] = []


class PhaseApprovalResult(BaseModel):
    message: str
    current_phase: int
    current_week: int
    unlocked_week_number: Optional[int] = None
    certificate_id: Optional[str] = None


class DashboardWeek(BaseModel):
    week: WeekResponse
    progress: Optional[ProgressResponse] = None


class DashboardPhase(BaseModel):
    phase: PhaseResponse
    weeks: list[DashboardWeek]


class DashboardStats(BaseModel):
    total_points: int
    current_phase: int
    current_week: int


class StudentDashboard(BaseModel):
    user: UserResponse
    phases: list[DashboardPhase]
    current_week: Optional[WeekResponse] = None
    current_week_progress: Optional[ProgressResponse] = None
    overall_progress: int
    completed_weeks: int
    total_weeks: int
    recent_submissions: list[SubmissionResponse]
    certificate: Optional[CertificateResponse] = None
    stats: DashboardStats


class WeekDetail(BaseModel):
    week: WeekResponse
    content: Optional[ContentResponse] = None
    progress: Optional[ProgressResponse] = None
    submissions: list[SubmissionResponse] = []
    quiz_taken: bool


class StudentDetail(BaseModel):
    """Admin view of one student."""

    user: UserResponse
    progress: list[ProgressResponse]
    submissions: list[SubmissionResponse]
    certificate: Optional[CertificateResponse] = None
    standings: list[PhaseStandingResponse]


class StudentListItem(UserResponse):
    completed_weeks: int
    progress_percentage: int


class StudentList(BaseModel):
    students: list[StudentListItem]
    total: int
    page: int
    pages: int


class AdminDashboard(BaseModel):
    total_students: int
    active_students: int
    pending_submissions: int
    certificates_issued: int
    total_weeks: int
    phase_completion: list[dict[str, Any]]
    recent_submissions: list[SubmissionResponse]
