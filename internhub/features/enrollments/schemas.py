from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from internhub.features.catalog.models import SubmissionType
from internhub.features.submissions.models import SubmissionStatus
from .models import EnrollmentStatus


class EnrollRequest(BaseModel):
    internship_id: UUID


class EnrollmentResponse(BaseModel):
    id: UUID
    user_id: UUID
    internship_id: UUID
    current_unlocked_task: int
    status: EnrollmentStatus
    final_score: int
    is_completed: bool
    certificate_purchased: bool
    enrollment_date: datetime
    completion_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TaskProgress(BaseModel):
    task_id: UUID
    task_number: int
    title: str
    points: int
    submission_type: SubmissionType
    max_attempts: int
    attempts_used: int = 0
    is_unlocked: bool = False
    can_submit: bool = False
    latest_status: Optional[SubmissionStatus] = None
    latest_score: Optional[int] = None
    admin_feedback: Optional[str] = None
    unlocks_at: Optional[datetime] = None
    resubmission_allowed_until: Optional[datetime] = None


class CertificateStandingResponse(BaseModel):
    final_score: int
    max_points: int
    percentage: float
    pass_percentage: int
    passed: bool
    eligible: bool
    reason: Optional[str] = None


class EnrollmentProgress(BaseModel):
    enrollment: EnrollmentResponse
    internship_title: str
    total_tasks: int
    approved_tasks: int
    tasks: List[TaskProgress] = Field(default_factory=list)
    certificate: CertificateStandingResponse


class UnenrollResponse(BaseModel):
    enrollment_id: UUID
    internship_id: UUID
    submissions_removed: int
    message: str
