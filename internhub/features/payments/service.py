"""Certificate payment handshake.

PENDING -> {VERIFIED, REJECTED}, both terminal. Verification is the only
path that creates a certificate session.
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
from internhub.features.certificates.repository import CertificateRepository
from internhub.features.certification.service import certificate_standing
from internhub.features.enrollments.repository import EnrollmentRepository
from internhub.features.notifications.models import NotificationKind
from internhub.features.notifications.service import NotificationService, notification_service
from .models import Payment, PaymentStatus, PaymentType
from .repository import PaymentRepository
from .schemas import PaymentResponse, PaymentVerified

logger = logging.getLogger("payments.service")


def _require_pending(payment: Payment) -> None:
    if payment.payment_status != PaymentStatus.PENDING:
        raise ConflictError(
            f"Payment is already {payment.payment_status.value.lower()}",
            {"payment_status": payment.payment_status.value},
        )


class PaymentService:

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
    def get_payment(db: Session, payment_id: UUID, for_update: bool = False) -> Payment:
        payment = PaymentRepository.get(db, payment_id, for_update=for_update)
        if payment is None:
            raise NotFoundError.for_entity("Payment", payment_id)
        return payment

    def initiate_certificate_payment(self, db: Session, enrollment_id: UUID, user_id: UUID) -> Payment:
        with transaction(db):
            enrollment = EnrollmentRepository.get(db, enrollment_id, for_update=True)
            if enrollment is None:
                raise NotFoundError.for_entity("Enrollment", enrollment_id)
            if enrollment.user_id != user_id:
                raise UnauthorizedError("Enrollment belongs to another user")

            internship = enrollment.internship
            standing = certificate_standing(db, enrollment, internship)
            if not standing.eligible:
                raise ValidationError(
                    standing.ineligibility_reason() or "Not eligible for a certificate",
                    {"percentage": round(standing.percentage, 2), "pass_percentage": standing.pass_percentage},
                )
            existing = PaymentRepository.find_pending_certificate(db, user_id, internship.id)
            if existing is not None:
                raise ConflictError(
                    "A certificate payment is already pending for this internship",
                    {"payment_id": str(existing.id)},
                )

            payment = PaymentRepository.create(
                db,
                user_id=user_id,
                internship_id=internship.id,
                enrollment_id=enrollment.id,
                amount=internship.certificate_price,
                payment_type=PaymentType.CERTIFICATE,
                payment_status=PaymentStatus.PENDING,
            )
            payment_id = payment.id
            amount = payment.amount

        logger.info("payment.initiated payment_id=%s enrollment_id=%s amount=%s", payment_id, enrollment_id, amount)
        self.auditor.record("PAYMENT_INITIATED", user_id, f"Certificate payment {payment_id} for {amount}")
        return payment

    def upload_proof(
        self,
        db: Session,
        payment_id: UUID,
        user_id: UUID,
        transaction_id: Optional[str],
        proof: Optional[bytes],
        filename: Optional[str] = None,
    ) -> Payment:
        """Attach the transaction id and proof file. Status stays PENDING."""
        with transaction(db):
            payment = self.get_payment(db, payment_id, for_update=True)
            if payment.user_id != user_id:
                raise UnauthorizedError("Payment belongs to another user")
            _require_pending(payment)

            txn = clean_text(transaction_id)
            if not txn:
                raise ValidationError("Transaction ID is required")
            if not proof:
                raise ValidationError("Payment proof file is required")

            payment.payment_proof_url = self.storage.store_file(proof, "payments", filename)
            payment.transaction_id = txn
            payment.proof_submitted_at = timekeeper.now()

        logger.info("payment.proof_uploaded payment_id=%s user_id=%s", payment_id, user_id)
        self.notifier.notify(
            user_id,
            "Payment Proof Received",
            "Your payment proof was received and is awaiting verification.",
            NotificationKind.INFO,
        )
        return payment

    def proof_for(self, db: Session, payment_id: UUID, user_id: UUID, is_admin: bool = False) -> Path:
        payment = self.get_payment(db, payment_id)
        if not is_admin and payment.user_id != user_id:
            raise UnauthorizedError("Payment belongs to another user")
        if not payment.payment_proof_url:
            raise NotFoundError("No payment proof uploaded", {"payment_id": str(payment_id)})
        return self.storage.resolve(payment.payment_proof_url)

    def verify_payment(
        self,
        db: Session,
        payment_id: UUID,
        reviewer_id: UUID,
        verified_transaction_id: Optional[str],
    ) -> PaymentVerified:
        with transaction(db):
            payment = self.get_payment(db, payment_id, for_update=True)
            _require_pending(payment)
            if not payment.proof_submitted:
                raise ValidationError("Payment proof has not been submitted")
            verified_txn = clean_text(verified_transaction_id)
            if not verified_txn:
                raise ValidationError("Verified transaction ID is required")
            if payment.payment_type != PaymentType.CERTIFICATE:
                raise ValidationError("Only certificate payments can be verified here")
            if payment.enrollment_id is None:
                raise ConflictError("Enrollment for this payment no longer exists")

            enrollment = EnrollmentRepository.get(db, payment.enrollment_id, for_update=True)
            if enrollment.certificate_purchased or CertificateRepository.find_for_enrollment(db, enrollment.id):
                raise ConflictError("Certificate already issued for this enrollment")

            now = timekeeper.now()
            payment.payment_status = PaymentStatus.VERIFIED
            payment.verified_at = now
            payment.verified_by = reviewer_id
            payment.verified_transaction_id = verified_txn

            session = CertificateRepository.create_session(db, enrollment.id, payment.user_id, payment.id)
            enrollment.certificate_purchased = True

            intern_id = payment.user_id
            title = enrollment.internship.title
            result = PaymentVerified(
                payment=PaymentResponse.model_validate(payment),
                certificate_session_id=session.id,
                certificate_number=session.certificate_number,
            )

        logger.info(
            "payment.verified payment_id=%s reviewer_id=%s certificate_number=%s",
            payment_id, reviewer_id, result.certificate_number,
        )
        self.notifier.notify(
            intern_id,
            "Payment Verified",
            f'Your certificate payment for "{title}" was verified. '
            f"Certificate number: {result.certificate_number}.",
            NotificationKind.SUCCESS,
        )
        self.auditor.record("PAYMENT_VERIFIED", reviewer_id, f"Payment {payment_id} verified ({verified_txn})")
        return result

    def reject_payment(self, db: Session, payment_id: UUID, reviewer_id: UUID, reason: Optional[str]) -> Payment:
        """Reject a pending payment. The enrollment stays eligible for a new one."""
        with transaction(db):
            payment = self.get_payment(db, payment_id, for_update=True)
            _require_pending(payment)
            note = clean_text(reason)
            if not note:
                raise ValidationError("Rejection reason is required")

            payment.payment_status = PaymentStatus.REJECTED
            payment.rejection_reason = note
            payment.rejected_at = timekeeper.now()
            payment.verified_by = reviewer_id
            intern_id = payment.user_id

        logger.info("payment.rejected payment_id=%s reviewer_id=%s", payment_id, reviewer_id)
        self.notifier.notify(
            intern_id,
            "Payment Rejected",
            f"Your certificate payment was rejected. Reason: {note}. You can start a new payment.",
            NotificationKind.ERROR,
        )
        self.auditor.record("PAYMENT_REJECTED", reviewer_id, f"Payment {payment_id} rejected: {note}")
        return payment

    @staticmethod
    def list_for_user(db: Session, user_id: UUID) -> List[Payment]:
        return PaymentRepository.list_for_user(db, user_id)

    @staticmethod
    def admin_list(
        db: Session,
        status: Optional[PaymentStatus] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Dict[str, Any]:
        return paginate_query(PaymentRepository.admin_query(db, status), page, per_page)


payment_service = PaymentService()
