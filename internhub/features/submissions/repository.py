from datetime import datetime
from typing import List, Optional, Set
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from internhub.features.catalog.models import Task
from .models import ResubmissionOpportunity, Submission, SubmissionStatus, TaskUnlock


class SubmissionRepository:

    @staticmethod
    def get(db: Session, submission_id: UUID, for_update: bool = False) -> Optional[Submission]:
        q = db.query(Submission).filter(Submission.id == submission_id)
        if for_update:
            q = q.with_for_update()
        return q.first()

    @staticmethod
    def create(db: Session, **fields) -> Submission:
        row = Submission(**fields)
        db.add(row)
        db.flush()
        return row

    @staticmethod
    def count_attempts(db: Session, enrollment_id: UUID, task_id: UUID) -> int:
        return (
            db.query(func.count(Submission.id))
            .filter(Submission.enrollment_id == enrollment_id, Submission.task_id == task_id)
            .scalar()
            or 0
        )

    @staticmethod
    def latest_for_task(db: Session, enrollment_id: UUID, task_id: UUID) -> Optional[Submission]:
        return (
            db.query(Submission)
            .filter(Submission.enrollment_id == enrollment_id, Submission.task_id == task_id)
            .order_by(Submission.attempt_number.desc(), Submission.submitted_at.desc())
            .first()
        )

    @staticmethod
    def sum_approved_scores(db: Session, enrollment_id: UUID) -> int:
        return int(
            db.query(func.coalesce(func.sum(Submission.score), 0))
            .filter(
                Submission.enrollment_id == enrollment_id,
                Submission.status == SubmissionStatus.APPROVED,
            )
            .scalar()
            or 0
        )

    @staticmethod
    def approved_task_ids(db: Session, enrollment_id: UUID) -> Set[UUID]:
        rows = (
            db.query(Submission.task_id)
            .filter(
                Submission.enrollment_id == enrollment_id,
                Submission.status == SubmissionStatus.APPROVED,
            )
            .distinct()
            .all()
        )
        return {r.task_id for r in rows}

    @staticmethod
    def list_for_enrollment(db: Session, enrollment_id: UUID) -> List[Submission]:
        return (
            db.query(Submission)
            .filter(Submission.enrollment_id == enrollment_id)
            .order_by(Submission.submitted_at.asc(), Submission.attempt_number.asc())
            .all()
        )

    @staticmethod
    def list_for_user(db: Session, user_id: UUID) -> List[Submission]:
        return (
            db.query(Submission)
            .filter(Submission.user_id == user_id)
            .order_by(Submission.submitted_at.desc())
            .all()
        )

    @staticmethod
    def admin_query(db: Session, status: Optional[SubmissionStatus] = None, internship_id: Optional[UUID] = None):
        q = db.query(Submission)
        if status is not None:
            q = q.filter(Submission.status == status)
        if internship_id is not None:
            q = q.join(Task, Task.id == Submission.task_id).filter(Task.internship_id == internship_id)
        return q.order_by(Submission.submitted_at.desc())

    # -- unlock-delay records -------------------------------------------
    @staticmethod
    def get_task_unlock(db: Session, enrollment_id: UUID, task_id: UUID) -> Optional[TaskUnlock]:
        return (
            db.query(TaskUnlock)
            .filter(TaskUnlock.enrollment_id == enrollment_id, TaskUnlock.task_id == task_id)
            .first()
        )

    @staticmethod
    def schedule_task_unlock(db: Session, enrollment_id: UUID, task_id: UUID, unlocks_at: datetime) -> TaskUnlock:
        row = SubmissionRepository.get_task_unlock(db, enrollment_id, task_id)
        if row is None:
            row = TaskUnlock(enrollment_id=enrollment_id, task_id=task_id, unlocks_at=unlocks_at, is_unlocked=False)
            db.add(row)
        else:
            row.unlocks_at = unlocks_at
            row.is_unlocked = False
        db.flush()
        return row

    @staticmethod
    def list_task_unlocks(db: Session, enrollment_id: UUID) -> List[TaskUnlock]:
        return db.query(TaskUnlock).filter(TaskUnlock.enrollment_id == enrollment_id).all()

    # -- resubmission windows -------------------------------------------
    @staticmethod
    def open_opportunity(db: Session, enrollment_id: UUID, task_id: UUID, at: datetime) -> Optional[ResubmissionOpportunity]:
        return (
            db.query(ResubmissionOpportunity)
            .filter(
                ResubmissionOpportunity.enrollment_id == enrollment_id,
                ResubmissionOpportunity.task_id == task_id,
                ResubmissionOpportunity.used_at.is_(None),
                ResubmissionOpportunity.allowed_until >= at,
            )
            .order_by(ResubmissionOpportunity.allowed_until.desc())
            .first()
        )

    @staticmethod
    def create_opportunity(
        db: Session,
        enrollment_id: UUID,
        task_id: UUID,
        submission_id: UUID,
        allowed_until: datetime,
    ) -> ResubmissionOpportunity:
        row = ResubmissionOpportunity(
            enrollment_id=enrollment_id,
            task_id=task_id,
            submission_id=submission_id,
            allowed_until=allowed_until,
        )
        db.add(row)
        db.flush()
        return row

    @staticmethod
    def list_opportunities(db: Session, enrollment_id: UUID) -> List[ResubmissionOpportunity]:
        return (
            db.query(ResubmissionOpportunity)
            .filter(ResubmissionOpportunity.enrollment_id == enrollment_id)
            .all()
        )
