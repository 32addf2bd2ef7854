"""Read-only aggregate counts for the admin and intern dashboards."""

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from internhub.features.certificates.models import CertificateSession
from internhub.features.enrollments.models import Enrollment
from internhub.features.notifications.repository import NotificationRepository
from internhub.features.payments.models import Payment, PaymentStatus
from internhub.features.submissions.models import Submission, SubmissionStatus
from internhub.features.users.models import User, UserRole
from .schemas import AdminStats, InternStats


def admin_stats(db: Session) -> AdminStats:
    interns = db.query(User).filter(User.role == UserRole.INTERN)
    return AdminStats(
        total_interns=interns.count(),
        active_interns=interns.filter(User.is_active.is_(True)).count(),
        total_enrollments=db.query(Enrollment).count(),
        completed_enrollments=db.query(Enrollment).filter(Enrollment.is_completed.is_(True)).count(),
        total_submissions=db.query(Submission).count(),
        pending_submissions=db.query(Submission).filter(Submission.status == SubmissionStatus.PENDING).count(),
        total_payments=db.query(Payment).count(),
        pending_payments=db.query(Payment).filter(Payment.payment_status == PaymentStatus.PENDING).count(),
        certificates_issued=db.query(CertificateSession).count(),
    )


def intern_stats(db: Session, user_id: UUID) -> InternStats:
    enrollments = db.query(Enrollment).filter(Enrollment.user_id == user_id)
    total = enrollments.count()
    completed = enrollments.filter(Enrollment.is_completed.is_(True)).count()
    approved_count, points = (
        db.query(func.count(Submission.id), func.coalesce(func.sum(Submission.score), 0))
        .filter(Submission.user_id == user_id, Submission.status == SubmissionStatus.APPROVED)
        .one()
    )
    return InternStats(
        total_enrollments=total,
        active_enrollments=total - completed,
        completed_enrollments=completed,
        completed_tasks=approved_count or 0,
        total_points=int(points or 0),
        unread_notifications=NotificationRepository.count_unread(db, user_id),
    )
