import enum
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Enum,
    ForeignKey,
    Integer,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from internhub.common import timekeeper
from internhub.db.base import Base, UTCDateTime
from internhub.features.catalog.models import Internship  # noqa: F401  (relationship target)


class EnrollmentStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    UNENROLLED = "UNENROLLED"


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("user_id", "internship_id", name="uq_enrollment_user_internship"),
        CheckConstraint("current_unlocked_task >= 1", name="ck_enrollment_cursor_positive"),
        CheckConstraint("final_score >= 0", name="ck_enrollment_final_score"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    internship_id = Column(Uuid, ForeignKey("internships.id"), nullable=False, index=True)
    # Unlock cursor: highest task number the intern may submit against
    current_unlocked_task = Column(Integer, nullable=False, default=1)
    status = Column(Enum(EnrollmentStatus, name="enrollment_status"), nullable=False, default=EnrollmentStatus.ACTIVE)
    final_score = Column(Integer, nullable=False, default=0)
    is_completed = Column(Boolean, nullable=False, default=False)
    certificate_purchased = Column(Boolean, nullable=False, default=False)
    enrollment_date = Column(UTCDateTime, nullable=False, default=timekeeper.now)
    completion_date = Column(UTCDateTime, nullable=True)
    unenrollment_date = Column(UTCDateTime, nullable=True)

    internship = relationship("Internship")

    def __repr__(self):
        return (
            f"<Enrollment(id={self.id}, user_id={self.user_id}, internship_id={self.internship_id}, "
            f"cursor={self.current_unlocked_task}, status={self.status})>"
        )
