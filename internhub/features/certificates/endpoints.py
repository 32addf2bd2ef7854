from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from internhub.common.deps import CurrentUser, get_current_user, require_admin
from internhub.db.session import get_db
from .models import ValidationStatus
from .schemas import (
    CertificateResponse,
    ValidationPage,
    ValidationResponse,
    ValidationReviewRequest,
)
from .service import certificate_service

router = APIRouter(prefix="/certificates", tags=["Certificates"])
admin_router = APIRouter(prefix="/admin/certificates", tags=["Admin"], dependencies=[Depends(require_admin())])


@router.get("/me", response_model=List[CertificateResponse])
def list_my_certificates(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return certificate_service.list_for_user(db, user.id)


@router.get("/{session_id}/download", response_class=FileResponse)
def download_certificate(
    session_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    issued = certificate_service.issue_certificate_download(db, session_id, user.id, is_admin=user.is_admin)
    path = certificate_service.storage.resolve(issued.certificate_url)
    return FileResponse(
        path,
        filename=f"{issued.certificate_number}{path.suffix}",
        headers={"X-Download-Count": str(issued.download_count)},
    )


@router.post("/validations", response_model=ValidationResponse, status_code=status.HTTP_201_CREATED)
def submit_certificate_validation(
    certificate_number: str = Form(...),
    scan: Optional[UploadFile] = File(None),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    data = scan.file.read() if scan is not None else None
    return certificate_service.submit_validation(
        db, user.id, certificate_number, data, scan.filename if scan is not None else None
    )


@router.get("/validations/me", response_model=List[ValidationResponse])
def list_my_validations(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return certificate_service.list_validations_for_user(db, user.id)


@router.get("/validations/{validation_id}/scan", response_class=FileResponse)
def get_validation_scan(
    validation_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return FileResponse(certificate_service.validation_scan_for(db, validation_id, user.id, is_admin=user.is_admin))


@admin_router.post("/{session_id}/file", response_model=CertificateResponse)
def upload_certificate_file(
    session_id: UUID,
    file: Optional[UploadFile] = File(None),
    admin: CurrentUser = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    data = file.file.read() if file is not None else None
    return certificate_service.upload_certificate_file(
        db, session_id, admin.id, data, file.filename if file is not None else None
    )


@admin_router.get("/validations", response_model=ValidationPage)
def list_validations(
    status_filter: Optional[ValidationStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return certificate_service.admin_list_validations(db, status_filter, page, per_page)


@admin_router.post("/validations/{validation_id}/approve", response_model=ValidationResponse)
def approve_validation(
    validation_id: UUID,
    payload: ValidationReviewRequest,
    admin: CurrentUser = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    return certificate_service.approve_validation(db, validation_id, admin.id, payload.message)


@admin_router.post("/validations/{validation_id}/reject", response_model=ValidationResponse)
def reject_validation(
    validation_id: UUID,
    payload: ValidationReviewRequest,
    admin: CurrentUser = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    return certificate_service.reject_validation(db, validation_id, admin.id, payload.message)
