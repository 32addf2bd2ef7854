from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from .models import Payment, PaymentStatus, PaymentType


class PaymentRepository:

    @staticmethod
    def get(db: Session, payment_id: UUID, for_update: bool = False) -> Optional[Payment]:
        q = db.query(Payment).filter(Payment.id == payment_id)
        if for_update:
            q = q.with_for_update()
        return q.first()

    @staticmethod
    def find_pending_certificate(db: Session, user_id: UUID, internship_id: UUID) -> Optional[Payment]:
        return (
            db.query(Payment)
            .filter(
                Payment.user_id == user_id,
                Payment.internship_id == internship_id,
                Payment.payment_type == PaymentType.CERTIFICATE,
                Payment.payment_status == PaymentStatus.PENDING,
            )
            .first()
        )

    @staticmethod
    def create(db: Session, **fields) -> Payment:
        row = Payment(**fields)
        db.add(row)
        db.flush()
        return row

    @staticmethod
    def list_for_user(db: Session, user_id: UUID) -> List[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.user_id == user_id)
            .order_by(Payment.created_at.desc())
            .all()
        )

    @staticmethod
    def admin_query(db: Session, status: Optional[PaymentStatus] = None):
        q = db.query(Payment)
        if status is not None:
            q = q.filter(Payment.payment_status == status)
        return q.order_by(Payment.created_at.desc())
