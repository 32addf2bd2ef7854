from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from internhub.common.schemas import Pagination
from .models import PaymentStatus, PaymentType


class InitiatePaymentRequest(BaseModel):
    enrollment_id: UUID


class VerifyPaymentRequest(BaseModel):
    verified_transaction_id: str = Field(..., min_length=1, max_length=255)


class RejectPaymentRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class PaymentResponse(BaseModel):
    id: UUID
    user_id: UUID
    internship_id: Optional[UUID] = None
    enrollment_id: Optional[UUID] = None
    amount: int
    payment_type: PaymentType
    payment_status: PaymentStatus
    transaction_id: Optional[str] = None
    payment_proof_url: Optional[str] = None
    proof_submitted_at: Optional[datetime] = None
    verified_transaction_id: Optional[str] = None
    verified_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentVerified(BaseModel):
    payment: PaymentResponse
    certificate_session_id: UUID
    certificate_number: str


class PaymentPage(BaseModel):
    items: List[PaymentResponse]
    pagination: Pagination
