"""Issued certificates: file upload, downloads and physical-copy validation.

Certificate sessions themselves are created only by payment verification.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from internhub.adapters.file_storage import LocalFileStorage, file_storage
from internhub.common import timekeeper
from internhub.common.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from internhub.common.utils import clean_text, paginate_query
from internhub.db.session import transaction
from internhub.features.audit.service import AuditService, audit_service
from internhub.features.notifications.models import NotificationKind
from internhub.features.notifications.service import NotificationService, notification_service
from .models import CertificateSession, CertificateStatus, CertificateValidation, ValidationStatus
from .repository import CertificateRepository
from .schemas import CertificateDownload

logger = logging.getLogger("certificates.service")


class CertificateService:

    def __init__(
        self,
        storage: Optional[LocalFileStorage] = None,
        notifier: Optional[NotificationService] = None,
        auditor: Optional[AuditService] = None,
    ) -> None:
        self.storage = storage or file_storage
        self.notifier = notifier or notification_service
        self.auditor = auditor or audit_service

    @staticmethod
    def get_session(db: Session, session_id: UUID, for_update: bool = False) -> CertificateSession:
        row = CertificateRepository.get_session(db, session_id, for_update=for_update)
        if row is None:
            raise NotFoundError.for_entity("Certificate", session_id)
        return row

    @staticmethod
    def list_for_user(db: Session, user_id: UUID) -> List[CertificateSession]:
        return CertificateRepository.list_for_user(db, user_id)

    def upload_certificate_file(
        self,
        db: Session,
        session_id: UUID,
        admin_id: UUID,
        data: Optional[bytes],
        filename: Optional[str] = None,
    ) -> CertificateSession:
        """Attach the rendered certificate. ISSUED -> UPLOADED; re-upload replaces the file."""
        if not data:
            raise ValidationError("Certificate file is required")
        with transaction(db):
            cert = self.get_session(db, session_id, for_update=True)
            cert.certificate_url = self.storage.store_file(data, "certificates", filename)
            cert.status = CertificateStatus.UPLOADED
            cert.uploaded_at = timekeeper.now()
            cert.uploaded_by = admin_id
            user_id = cert.user_id
            number = cert.certificate_number

        logger.info("certificate.uploaded session_id=%s number=%s", session_id, number)
        self.notifier.notify(
            user_id,
            "Certificate Ready",
            f"Your certificate {number} is ready to download.",
            NotificationKind.SUCCESS,
        )
        self.auditor.record("CERTIFICATE_UPLOADED", admin_id, f"Certificate {number} uploaded")
        return cert

    def issue_certificate_download(
        self,
        db: Session,
        session_id: UUID,
        user_id: UUID,
        is_admin: bool = False,
    ) -> CertificateDownload:
        with transaction(db):
            cert = self.get_session(db, session_id, for_update=True)
            if not is_admin and cert.user_id != user_id:
                raise UnauthorizedError("Certificate belongs to another user")
            if cert.status != CertificateStatus.UPLOADED or not cert.certificate_url:
                raise ConflictError("Certificate file has not been uploaded yet")
            self.storage.resolve(cert.certificate_url)

            cert.download_count = (cert.download_count or 0) + 1
            cert.last_downloaded_at = timekeeper.now()
            result = CertificateDownload(
                certificate_number=cert.certificate_number,
                certificate_url=cert.certificate_url,
                download_count=cert.download_count,
            )

        logger.info("certificate.downloaded session_id=%s user_id=%s count=%s", session_id, user_id, result.download_count)
        return result

    # ------------------------------------------------------------------
    # Validation of physical copies
    # ------------------------------------------------------------------
    def validation_scan_for(self, db: Session, validation_id: UUID, user_id: UUID, is_admin: bool = False) -> Path:
        row = CertificateRepository.get_validation(db, validation_id)
        if row is None:
            raise NotFoundError.for_entity("Certificate validation", validation_id)
        if not is_admin and row.user_id != user_id:
            raise UnauthorizedError("Validation request belongs to another user")
        return self.storage.resolve(row.certificate_url)

    def submit_validation(
        self,
        db: Session,
        user_id: UUID,
        certificate_number: str,
        data: Optional[bytes],
        filename: Optional[str] = None,
    ) -> CertificateValidation:
        number = clean_text(certificate_number)
        if not number:
            raise ValidationError("Certificate number is required")
        if not data:
            raise ValidationError("Certificate scan is required")

        with transaction(db):
            cert = CertificateRepository.get_by_number(db, number)
            if cert is None:
                raise NotFoundError("Certificate not found", {"certificate_number": number})
            if cert.user_id != user_id:
                raise UnauthorizedError("Certificate belongs to another user")
            row = CertificateRepository.create_validation(
                db,
                user_id=user_id,
                certificate_session_id=cert.id,
                certificate_number=number,
                certificate_url=self.storage.store_file(data, "validations", filename),
                status=ValidationStatus.PENDING,
                submitted_at=timekeeper.now(),
            )
            validation_id = row.id

        logger.info("validation.submitted validation_id=%s number=%s", validation_id, number)
        return row

    def _review_validation(
        self,
        db: Session,
        validation_id: UUID,
        admin_id: UUID,
        outcome: ValidationStatus,
        message: Optional[str],
    ) -> CertificateValidation:
        with transaction(db):
            row = CertificateRepository.get_validation(db, validation_id, for_update=True)
            if row is None:
                raise NotFoundError.for_entity("Certificate validation", validation_id)
            if row.status != ValidationStatus.PENDING:
                raise ConflictError(f"Validation is already {row.status.value.lower()}")
            row.status = outcome
            row.review_message = clean_text(message)
            row.reviewed_at = timekeeper.now()
            row.reviewed_by = admin_id
            user_id = row.user_id
            number = row.certificate_number

        logger.info("validation.%s validation_id=%s admin_id=%s", outcome.value.lower(), validation_id, admin_id)
        if outcome == ValidationStatus.VALID:
            self.notifier.notify(user_id, "Certificate Validated", f"Certificate {number} is valid.", NotificationKind.SUCCESS)
        else:
            self.notifier.notify(
                user_id,
                "Certificate Validation Failed",
                f"Certificate {number} could not be validated: {row.review_message}",
                NotificationKind.ERROR,
            )
        self.auditor.record(f"CERTIFICATE_{outcome.value}", admin_id, f"Validation {validation_id} for {number}")
        return row

    def approve_validation(self, db: Session, validation_id: UUID, admin_id: UUID, message: Optional[str] = None) -> CertificateValidation:
        return self._review_validation(db, validation_id, admin_id, ValidationStatus.VALID, message)

    def reject_validation(self, db: Session, validation_id: UUID, admin_id: UUID, message: Optional[str]) -> CertificateValidation:
        if not clean_text(message):
            raise ValidationError("A message is required when rejecting a validation")
        return self._review_validation(db, validation_id, admin_id, ValidationStatus.INVALID, message)

    @staticmethod
    def list_validations_for_user(db: Session, user_id: UUID) -> List[CertificateValidation]:
        return CertificateRepository.list_validations_for_user(db, user_id)

    @staticmethod
    def admin_list_validations(
        db: Session,
        status: Optional[ValidationStatus] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Dict[str, Any]:
        return paginate_query(CertificateRepository.validations_query(db, status), page, per_page)


certificate_service = CertificateService()
