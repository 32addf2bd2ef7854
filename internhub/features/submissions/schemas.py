# internhub/features/submissions/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from internhub.common.schemas import Pagination
from internhub.features.catalog.models import SubmissionType
from .models import SubmissionStatus


class SubmissionPayload(BaseModel):
    """What the intern hands in. Which field is required depends on the task type."""
    github_url: Optional[str] = None
    form_data: Optional[Dict[str, Any]] = None
    file_bytes: Optional[bytes] = None
    filename: Optional[str] = None


class ReviewRequest(BaseModel):
    decision: SubmissionStatus
    score: Optional[int] = Field(None, ge=0)
    feedback: Optional[str] = None

    @model_validator(mode="after")
    def _terminal_decision(self) -> "ReviewRequest":
        if self.decision == SubmissionStatus.PENDING:
            raise ValueError("decision must be APPROVED or REJECTED")
        return self


class SubmissionResponse(BaseModel):
    id: UUID
    enrollment_id: UUID
    task_id: UUID
    user_id: UUID
    attempt_number: int
    submission_type: SubmissionType
    github_url: Optional[str] = None
    form_data: Optional[Dict[str, Any]] = None
    file_url: Optional[str] = None
    status: SubmissionStatus
    score: int
    admin_feedback: Optional[str] = None
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None
    next_task_unlocked: bool

    model_config = ConfigDict(from_attributes=True)


class SubmissionPage(BaseModel):
    items: List[SubmissionResponse]
    pagination: Pagination
