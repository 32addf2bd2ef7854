import uuid
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from internhub.common import timekeeper
from internhub.core.config import get_settings
from .models import CertificateSession, CertificateValidation, ValidationStatus


def new_certificate_number(prefix: Optional[str] = None) -> str:
    """``CERT-2026-<32 hex digits>``: the full UUID4, unique without a global counter."""
    prefix = prefix or get_settings().certificate_prefix
    return f"{prefix}-{timekeeper.now().year}-{uuid.uuid4().hex.upper()}"


class CertificateRepository:

    @staticmethod
    def get_session(db: Session, session_id: UUID, for_update: bool = False) -> Optional[CertificateSession]:
        q = db.query(CertificateSession).filter(CertificateSession.id == session_id)
        if for_update:
            q = q.with_for_update()
        return q.first()

    @staticmethod
    def get_by_number(db: Session, certificate_number: str) -> Optional[CertificateSession]:
        return (
            db.query(CertificateSession)
            .filter(CertificateSession.certificate_number == certificate_number)
            .first()
        )

    @staticmethod
    def find_for_enrollment(db: Session, enrollment_id: UUID) -> Optional[CertificateSession]:
        return (
            db.query(CertificateSession)
            .filter(CertificateSession.enrollment_id == enrollment_id)
            .first()
        )

    @staticmethod
    def create_session(db: Session, enrollment_id: UUID, user_id: UUID, payment_id: UUID) -> CertificateSession:
        row = CertificateSession(
            enrollment_id=enrollment_id,
            user_id=user_id,
            payment_id=payment_id,
            certificate_number=new_certificate_number(),
            issued_at=timekeeper.now(),
        )
        db.add(row)
        db.flush()
        return row

    @staticmethod
    def list_for_user(db: Session, user_id: UUID) -> List[CertificateSession]:
        return (
            db.query(CertificateSession)
            .filter(CertificateSession.user_id == user_id)
            .order_by(CertificateSession.issued_at.desc())
            .all()
        )

    # -- validations ------------------------------------------------------
    @staticmethod
    def get_validation(db: Session, validation_id: UUID, for_update: bool = False) -> Optional[CertificateValidation]:
        q = db.query(CertificateValidation).filter(CertificateValidation.id == validation_id)
        if for_update:
            q = q.with_for_update()
        return q.first()

    @staticmethod
    def create_validation(db: Session, **fields) -> CertificateValidation:
        row = CertificateValidation(**fields)
        db.add(row)
        db.flush()
        return row

    @staticmethod
    def validations_query(db: Session, status: Optional[ValidationStatus] = None):
        q = db.query(CertificateValidation)
        if status is not None:
            q = q.filter(CertificateValidation.status == status)
        return q.order_by(CertificateValidation.submitted_at.desc())

    @staticmethod
    def list_validations_for_user(db: Session, user_id: UUID) -> List[CertificateValidation]:
        return (
            db.query(CertificateValidation)
            .filter(CertificateValidation.user_id == user_id)
            .order_by(CertificateValidation.submitted_at.desc())
            .all()
        )
