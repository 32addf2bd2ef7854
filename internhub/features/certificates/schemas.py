from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from internhub.common.schemas import Pagination
from .models import CertificateStatus, ValidationStatus


class CertificateResponse(BaseModel):
    id: UUID
    enrollment_id: UUID
    user_id: UUID
    payment_id: UUID
    certificate_number: str
    status: CertificateStatus
    issued_at: datetime
    certificate_url: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    download_count: int

    model_config = ConfigDict(from_attributes=True)


class CertificateDownload(BaseModel):
    certificate_number: str
    certificate_url: str
    download_count: int


class ValidationReviewRequest(BaseModel):
    message: Optional[str] = Field(None, max_length=2000)


class ValidationResponse(BaseModel):
    id: UUID
    user_id: UUID
    certificate_session_id: UUID
    certificate_number: str
    certificate_url: str
    status: ValidationStatus
    review_message: Optional[str] = None
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ValidationPage(BaseModel):
    items: List[ValidationResponse]
    pagination: Pagination
