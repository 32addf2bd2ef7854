import enum
import uuid

from sqlalchemy import Column, Enum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from internhub.common import timekeeper
from internhub.db.base import Base, UTCDateTime
from internhub.features.enrollments.models import Enrollment  # noqa: F401  (relationship target)


class CertificateStatus(str, enum.Enum):
    ISSUED = "ISSUED"      # number allocated on payment verification
    UPLOADED = "UPLOADED"  # certificate file attached, downloadable


class ValidationStatus(str, enum.Enum):
    PENDING = "PENDING"
    VALID = "VALID"
    INVALID = "INVALID"


class CertificateSession(Base):
    """Issued-certificate record; exists only after a VERIFIED certificate payment."""

    __tablename__ = "certificate_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    enrollment_id = Column(Uuid, ForeignKey("enrollments.id"), nullable=False, unique=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    payment_id = Column(Uuid, ForeignKey("payments.id"), nullable=False, unique=True)
    certificate_number = Column(String(64), nullable=False, unique=True, index=True)
    status = Column(Enum(CertificateStatus, name="certificate_status"), nullable=False, default=CertificateStatus.ISSUED)
    issued_at = Column(UTCDateTime, nullable=False, default=timekeeper.now)
    certificate_url = Column(String(500), nullable=True)
    uploaded_at = Column(UTCDateTime, nullable=True)
    uploaded_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    download_count = Column(Integer, nullable=False, default=0)
    last_downloaded_at = Column(UTCDateTime, nullable=True)

    enrollment = relationship("Enrollment")

    def __repr__(self):
        return f"<CertificateSession(number={self.certificate_number}, status={self.status})>"


class CertificateValidation(Base):
    """Intern-uploaded scan of a physical certificate awaiting admin review."""

    __tablename__ = "certificate_validations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    certificate_session_id = Column(Uuid, ForeignKey("certificate_sessions.id"), nullable=False, index=True)
    certificate_number = Column(String(64), nullable=False)
    certificate_url = Column(String(500), nullable=False)
    status = Column(Enum(ValidationStatus, name="validation_status"), nullable=False, default=ValidationStatus.PENDING, index=True)
    review_message = Column(Text, nullable=True)
    submitted_at = Column(UTCDateTime, nullable=False, default=timekeeper.now)
    reviewed_at = Column(UTCDateTime, nullable=True)
    reviewed_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
