from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from internhub.features.payments.models import Payment
from internhub.features.submissions.models import ResubmissionOpportunity, Submission, TaskUnlock
from .models import Enrollment


class EnrollmentRepository:

    @staticmethod
    def get(db: Session, enrollment_id: UUID, for_update: bool = False) -> Optional[Enrollment]:
        q = db.query(Enrollment).filter(Enrollment.id == enrollment_id)
        if for_update:
            q = q.with_for_update()
        return q.first()

    @staticmethod
    def find(db: Session, user_id: UUID, internship_id: UUID, for_update: bool = False) -> Optional[Enrollment]:
        q = db.query(Enrollment).filter(
            Enrollment.user_id == user_id,
            Enrollment.internship_id == internship_id,
        )
        if for_update:
            q = q.with_for_update()
        return q.first()

    @staticmethod
    def list_for_user(db: Session, user_id: UUID) -> List[Enrollment]:
        return (
            db.query(Enrollment)
            .filter(Enrollment.user_id == user_id)
            .order_by(Enrollment.enrollment_date.desc())
            .all()
        )

    @staticmethod
    def list_for_internship(db: Session, internship_id: UUID) -> List[Enrollment]:
        return db.query(Enrollment).filter(Enrollment.internship_id == internship_id).all()

    @staticmethod
    def create(db: Session, user_id: UUID, internship_id: UUID) -> Enrollment:
        row = Enrollment(user_id=user_id, internship_id=internship_id)
        db.add(row)
        db.flush()
        return row

    @staticmethod
    def delete_cascade(db: Session, enrollment_id: UUID) -> Dict[str, int]:
        """Delete an enrollment and every row it owns, children first.

        Payments outlive the enrollment and are detached. Runs inside the
        caller's transaction.
        """
        db.flush()
        removed = {
            "payments_detached": db.query(Payment)
            .filter(Payment.enrollment_id == enrollment_id)
            .update({"enrollment_id": None}, synchronize_session=False),
            "resubmission_opportunities": db.query(ResubmissionOpportunity)
            .filter(ResubmissionOpportunity.enrollment_id == enrollment_id)
            .delete(synchronize_session=False),
            "task_unlocks": db.query(TaskUnlock)
            .filter(TaskUnlock.enrollment_id == enrollment_id)
            .delete(synchronize_session=False),
            "submissions": db.query(Submission)
            .filter(Submission.enrollment_id == enrollment_id)
            .delete(synchronize_session=False),
        }
        removed["enrollments"] = (
            db.query(Enrollment)
            .filter(Enrollment.id == enrollment_id)
            .delete(synchronize_session=False)
        )
        db.expire_all()
        return removed
