# internhub/features/catalog/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import SubmissionType


class InternshipCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    duration_days: Optional[int] = Field(None, gt=0)
    certificate_price: Optional[int] = Field(None, ge=0)
    pass_percentage: Optional[int] = Field(None, ge=0, le=100)

    @field_validator("title", "description")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class InternshipPatch(BaseModel):
    """Partial admin edit. Fields left unset keep their stored value."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    duration_days: Optional[int] = Field(None, gt=0)
    certificate_price: Optional[int] = Field(None, ge=0)
    pass_percentage: Optional[int] = Field(None, ge=0, le=100)
    is_active: Optional[bool] = None

    def changes(self) -> Dict[str, Any]:
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class InternshipResponse(BaseModel):
    id: UUID
    title: str
    description: str
    duration_days: int
    certificate_price: int
    pass_percentage: int
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InternshipDetail(InternshipResponse):
    tasks: List["TaskResponse"] = Field(default_factory=list)
    max_points: int = 0


class InternshipDeleted(BaseModel):
    internship_id: UUID
    title: str
    enrollments_removed: int
    submissions_removed: int
    tasks_removed: int
    payments_detached: int


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    task_number: Optional[int] = Field(None, ge=1)
    points: Optional[int] = Field(None, gt=0)
    submission_type: SubmissionType = SubmissionType.GITHUB
    wait_time_hours: Optional[int] = Field(None, ge=0)
    max_attempts: Optional[int] = Field(None, ge=1)


class TaskPatch(BaseModel):
    """Partial admin edit of a task. ``task_number`` is fixed once created."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    points: Optional[int] = Field(None, gt=0)
    submission_type: Optional[SubmissionType] = None
    wait_time_hours: Optional[int] = Field(None, ge=0)
    max_attempts: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None

    def changes(self) -> Dict[str, Any]:
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class TaskResponse(BaseModel):
    id: UUID
    internship_id: UUID
    task_number: int
    title: str
    description: str
    points: int
    submission_type: SubmissionType
    wait_time_hours: int
    max_attempts: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


InternshipDetail.model_rebuild()
