import enum
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Enum,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from internhub.common import timekeeper
from internhub.db.base import Base, UTCDateTime
from internhub.features.catalog.models import SubmissionType
from internhub.features.enrollments.models import Enrollment  # noqa: F401  (relationship target)


class SubmissionStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Submission(Base):
    """One row per attempt; a resubmission after rejection is a new row."""

    __tablename__ = "submissions"
    __table_args__ = (
        CheckConstraint("score >= 0", name="ck_submission_score"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    enrollment_id = Column(Uuid, ForeignKey("enrollments.id"), nullable=False, index=True)
    task_id = Column(Uuid, ForeignKey("tasks.id"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    attempt_number = Column(Integer, nullable=False, default=1)
    submission_type = Column(Enum(SubmissionType, name="submission_type"), nullable=False)
    github_url = Column(String(500), nullable=True)
    form_data = Column(JSON, nullable=True)
    file_url = Column(String(500), nullable=True)
    status = Column(Enum(SubmissionStatus, name="submission_status"), nullable=False, default=SubmissionStatus.PENDING, index=True)
    score = Column(Integer, nullable=False, default=0)
    admin_feedback = Column(Text, nullable=True)
    submitted_at = Column(UTCDateTime, nullable=False, default=timekeeper.now)
    reviewed_at = Column(UTCDateTime, nullable=True)
    reviewed_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    next_task_unlocked = Column(Boolean, nullable=False, default=False)

    task = relationship("Task")
    enrollment = relationship("Enrollment")

    def __repr__(self):
        return f"<Submission(id={self.id}, task_id={self.task_id}, status={self.status})>"


class TaskUnlock(Base):
    """Advisory unlock-delay record written on submission. Never auto-approves."""

    __tablename__ = "task_unlocks"
    __table_args__ = (
        UniqueConstraint("enrollment_id", "task_id", name="uq_task_unlock_enrollment_task"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    enrollment_id = Column(Uuid, ForeignKey("enrollments.id"), nullable=False, index=True)
    task_id = Column(Uuid, ForeignKey("tasks.id"), nullable=False)
    unlocks_at = Column(UTCDateTime, nullable=False)
    is_unlocked = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, nullable=False, default=timekeeper.now)


class ResubmissionOpportunity(Base):
    __tablename__ = "resubmission_opportunities"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    enrollment_id = Column(Uuid, ForeignKey("enrollments.id"), nullable=False, index=True)
    task_id = Column(Uuid, ForeignKey("tasks.id"), nullable=False)
    submission_id = Column(Uuid, ForeignKey("submissions.id"), nullable=False, unique=True)
    allowed_until = Column(UTCDateTime, nullable=False)
    used_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=timekeeper.now)

    def is_open(self, at) -> bool:
        return self.used_at is None and at <= self.allowed_until
