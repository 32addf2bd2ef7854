import enum
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from internhub.common import timekeeper
from internhub.db.base import Base, UTCDateTime


class SubmissionType(str, enum.Enum):
    GITHUB = "GITHUB"
    FORM = "FORM"
    FILE = "FILE"


class Internship(Base):
    __tablename__ = "internships"
    __table_args__ = (
        CheckConstraint("pass_percentage BETWEEN 0 AND 100", name="ck_internship_pass_percentage"),
        CheckConstraint("certificate_price >= 0", name="ck_internship_certificate_price"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    duration_days = Column(Integer, nullable=False, default=35)
    certificate_price = Column(Integer, nullable=False, default=499)
    pass_percentage = Column(Integer, nullable=False, default=75)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, nullable=False, default=timekeeper.now)
    updated_at = Column(UTCDateTime, nullable=False, default=timekeeper.now, onupdate=timekeeper.now)

    tasks = relationship("Task", back_populates="internship", order_by="Task.task_number")

    def __repr__(self):
        return f"<Internship(id={self.id}, title={self.title!r})>"


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        UniqueConstraint("internship_id", "task_number", name="uq_task_internship_number"),
        CheckConstraint("points > 0", name="ck_task_points_positive"),
        CheckConstraint("task_number >= 1", name="ck_task_number_positive"),
        CheckConstraint("max_attempts >= 1", name="ck_task_max_attempts"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    internship_id = Column(Uuid, ForeignKey("internships.id"), nullable=False, index=True)
    task_number = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    points = Column(Integer, nullable=False, default=10)
    submission_type = Column(Enum(SubmissionType, name="submission_type"), nullable=False, default=SubmissionType.GITHUB)
    wait_time_hours = Column(Integer, nullable=False, default=12)
    max_attempts = Column(Integer, nullable=False, default=3)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime, nullable=False, default=timekeeper.now)

    internship = relationship("Internship", back_populates="tasks")

    def __repr__(self):
        return f"<Task(id={self.id}, internship_id={self.internship_id}, number={self.task_number})>"
