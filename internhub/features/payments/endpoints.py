from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from internhub.common.deps import CurrentUser, get_current_user, require_admin, require_intern
from internhub.db.session import get_db
from .models import PaymentStatus
from .schemas import (
    InitiatePaymentRequest,
    PaymentPage,
    PaymentResponse,
    PaymentVerified,
    RejectPaymentRequest,
    VerifyPaymentRequest,
)
from .service import payment_service

router = APIRouter(prefix="/payments", tags=["Payments"])
admin_router = APIRouter(prefix="/admin/payments", tags=["Admin"], dependencies=[Depends(require_admin())])


@router.post("/certificate", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def initiate_certificate_payment(
    payload: InitiatePaymentRequest,
    user: CurrentUser = Depends(require_intern()),
    db: Session = Depends(get_db),
):
    return payment_service.initiate_certificate_payment(db, payload.enrollment_id, user.id)


@router.post("/{payment_id}/proof", response_model=PaymentResponse)
def upload_payment_proof(
    payment_id: UUID,
    transaction_id: Optional[str] = Form(None),
    proof: Optional[UploadFile] = File(None),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    data = proof.file.read() if proof is not None else None
    return payment_service.upload_proof(
        db, payment_id, user.id, transaction_id, data, proof.filename if proof is not None else None
    )


@router.get("/{payment_id}/proof", response_class=FileResponse)
def get_payment_proof(
    payment_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return FileResponse(payment_service.proof_for(db, payment_id, user.id, is_admin=user.is_admin))


@router.get("/me", response_model=List[PaymentResponse])
def list_my_payments(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return payment_service.list_for_user(db, user.id)


@admin_router.get("/", response_model=PaymentPage)
def list_payments(
    status_filter: Optional[PaymentStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return payment_service.admin_list(db, status_filter, page, per_page)


@admin_router.post("/{payment_id}/verify", response_model=PaymentVerified)
def verify_payment(
    payment_id: UUID,
    payload: VerifyPaymentRequest,
    admin: CurrentUser = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    return payment_service.verify_payment(db, payment_id, admin.id, payload.verified_transaction_id)


@admin_router.post("/{payment_id}/reject", response_model=PaymentResponse)
def reject_payment(
    payment_id: UUID,
    payload: RejectPaymentRequest,
    admin: CurrentUser = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    return payment_service.reject_payment(db, payment_id, admin.id, payload.reason)
