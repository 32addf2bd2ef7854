import enum
import uuid

from sqlalchemy import CheckConstraint, Column, Enum, ForeignKey, Integer, String, Text, Uuid

from internhub.common import timekeeper
from internhub.db.base import Base, UTCDateTime


class PaymentType(str, enum.Enum):
    CERTIFICATE = "CERTIFICATE"
    PAID_TASK = "PAID_TASK"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class Payment(Base):
    """Manual-proof payment. PENDING -> {VERIFIED, REJECTED}, both terminal."""

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_payment_amount"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    internship_id = Column(Uuid, ForeignKey("internships.id"), nullable=True, index=True)
    enrollment_id = Column(Uuid, ForeignKey("enrollments.id"), nullable=True, index=True)
    paid_task_id = Column(Uuid, nullable=True)
    amount = Column(Integer, nullable=False)
    payment_type = Column(Enum(PaymentType, name="payment_type"), nullable=False, default=PaymentType.CERTIFICATE)
    payment_status = Column(Enum(PaymentStatus, name="payment_status"), nullable=False, default=PaymentStatus.PENDING, index=True)
    transaction_id = Column(String(255), nullable=True)
    payment_proof_url = Column(String(500), nullable=True)
    # Set only by the upload-proof transition; gates verification
    proof_submitted_at = Column(UTCDateTime, nullable=True)
    verified_transaction_id = Column(String(255), nullable=True)
    verified_at = Column(UTCDateTime, nullable=True)
    verified_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    rejected_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=timekeeper.now)

    @property
    def proof_submitted(self) -> bool:
        return self.proof_submitted_at is not None

    def __repr__(self):
        return f"<Payment(id={self.id}, type={self.payment_type}, status={self.payment_status})>"
