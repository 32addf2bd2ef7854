from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from internhub.common.deps import CurrentUser, get_current_user, require_intern
from internhub.db.session import get_db
from .schemas import EnrollmentProgress, EnrollmentResponse, EnrollRequest, UnenrollResponse
from .service import enrollment_service

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])


@router.post("/", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
def enroll(
    payload: EnrollRequest,
    user: CurrentUser = Depends(require_intern()),
    db: Session = Depends(get_db),
):
    return enrollment_service.enroll(db, user.id, payload.internship_id)


@router.get("/me", response_model=List[EnrollmentResponse])
def list_my_enrollments(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return enrollment_service.list_for_user(db, user.id)


@router.get("/{enrollment_id}/progress", response_model=EnrollmentProgress)
def get_enrollment_progress(
    enrollment_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return enrollment_service.get_enrollment_progress(db, enrollment_id, user.id, is_admin=user.is_admin)


@router.delete("/{enrollment_id}", response_model=UnenrollResponse)
def unenroll(
    enrollment_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return enrollment_service.unenroll(db, enrollment_id, user.id, is_admin=user.is_admin)
