from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from internhub.features.enrollments.repository import EnrollmentRepository
from internhub.features.payments.models import Payment
from .models import Internship, Task


class CatalogRepository:
    """Internship and task reference data."""

    @staticmethod
    def get_internship(db: Session, internship_id: UUID) -> Optional[Internship]:
        return db.get(Internship, internship_id)

    @staticmethod
    def list_internships(db: Session, active_only: bool = True) -> List[Internship]:
        q = db.query(Internship)
        if active_only:
            q = q.filter(Internship.is_active.is_(True))
        return q.order_by(Internship.created_at.desc()).all()

    @staticmethod
    def create_internship(db: Session, data: dict) -> Internship:
        row = Internship(**data)
        db.add(row)
        db.flush()
        return row

    @staticmethod
    def get_task(db: Session, task_id: UUID) -> Optional[Task]:
        return db.get(Task, task_id)

    @staticmethod
    def list_tasks(db: Session, internship_id: UUID, active_only: bool = False) -> List[Task]:
        q = db.query(Task).filter(Task.internship_id == internship_id)
        if active_only:
            q = q.filter(Task.is_active.is_(True))
        return q.order_by(Task.task_number).all()

    @staticmethod
    def max_points(db: Session, internship_id: UUID) -> int:
        """Sum of points over active tasks: the percentage denominator."""
        return int(
            db.query(func.coalesce(func.sum(Task.points), 0))
            .filter(Task.internship_id == internship_id, Task.is_active.is_(True))
            .scalar()
            or 0
        )

    @staticmethod
    def highest_active_task_number(db: Session, internship_id: UUID) -> Optional[int]:
        return (
            db.query(func.max(Task.task_number))
            .filter(Task.internship_id == internship_id, Task.is_active.is_(True))
            .scalar()
        )

    @staticmethod
    def next_active_task_number(db: Session, internship_id: UUID, after: int) -> Optional[int]:
        return (
            db.query(func.min(Task.task_number))
            .filter(
                Task.internship_id == internship_id,
                Task.is_active.is_(True),
                Task.task_number > after,
            )
            .scalar()
        )

    @staticmethod
    def unlocked_through(db: Session, internship_id: UUID, cursor: int) -> int:
        """Highest task number open under ``cursor``.

        Inactive tasks at the cursor are skipped over, so a deactivated task
        never holds back the active one after it.
        """
        upcoming = CatalogRepository.next_active_task_number(db, internship_id, cursor - 1)
        return upcoming if upcoming is not None else cursor

    @staticmethod
    def next_task_number(db: Session, internship_id: UUID) -> int:
        current = (
            db.query(func.max(Task.task_number))
            .filter(Task.internship_id == internship_id)
            .scalar()
        )
        return (current or 0) + 1

    @staticmethod
    def create_task(db: Session, data: dict) -> Task:
        row = Task(**data)
        db.add(row)
        db.flush()
        return row

    @staticmethod
    def delete_internship_cascade(db: Session, internship: Internship) -> Dict[str, int]:
        """Remove an internship with its tasks and enrollments (and their rows).

        Payments belong to users, so they are detached rather than deleted.
        Runs inside the caller's transaction.
        """
        db.flush()
        internship_id = internship.id
        totals = {"enrollments": 0, "submissions": 0, "tasks": 0, "payments_detached": 0}

        totals["payments_detached"] = (
            db.query(Payment)
            .filter(Payment.internship_id == internship_id)
            .update({"internship_id": None, "enrollment_id": None}, synchronize_session=False)
        )

        enrollment_ids = [e.id for e in EnrollmentRepository.list_for_internship(db, internship_id)]
        for enrollment_id in enrollment_ids:
            removed = EnrollmentRepository.delete_cascade(db, enrollment_id)
            totals["enrollments"] += removed["enrollments"]
            totals["submissions"] += removed["submissions"]

        totals["tasks"] = (
            db.query(Task)
            .filter(Task.internship_id == internship_id)
            .delete(synchronize_session=False)
        )
        db.query(Internship).filter(Internship.id == internship_id).delete(synchronize_session=False)
        db.expire_all()
        return totals
