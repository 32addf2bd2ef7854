"""Enrollment ledger: enroll, unenroll, progress and completion detection."""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from internhub.common import timekeeper
from internhub.common.errors import (
    AlreadyEnrolledError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from internhub.db.session import transaction
from internhub.features.audit.service import AuditService, audit_service
from internhub.features.catalog.models import Internship
from internhub.features.catalog.repository import CatalogRepository
from internhub.features.certificates.models import CertificateSession
from internhub.features.certification.service import CertificateStanding, certificate_standing
from internhub.features.notifications.models import NotificationKind
from internhub.features.notifications.service import NotificationService, notification_service
from internhub.features.payments.models import Payment, PaymentStatus, PaymentType
from internhub.features.submissions.models import SubmissionStatus
from internhub.features.submissions.repository import SubmissionRepository
from .models import Enrollment, EnrollmentStatus
from .repository import EnrollmentRepository
from .schemas import (
    CertificateStandingResponse,
    EnrollmentProgress,
    EnrollmentResponse,
    TaskProgress,
    UnenrollResponse,
)

logger = logging.getLogger("enrollments.service")


def detect_completion(db: Session, enrollment: Enrollment) -> Optional[CertificateStanding]:
    """Mark the enrollment COMPLETED once every active task has an approval.

    Score-independent. Returns the resulting standing when the enrollment
    transitions in this call, otherwise None. Runs inside the caller's
    transaction.
    """
    if enrollment.is_completed:
        return None
    db.flush()
    active_ids = {t.id for t in CatalogRepository.list_tasks(db, enrollment.internship_id, active_only=True)}
    if not active_ids:
        return None
    approved = SubmissionRepository.approved_task_ids(db, enrollment.id)
    if not active_ids.issubset(approved):
        return None

    enrollment.is_completed = True
    enrollment.completion_date = timekeeper.now()
    enrollment.status = EnrollmentStatus.COMPLETED
    db.flush()
    logger.info("enrollment.completed enrollment_id=%s final_score=%s", enrollment.id, enrollment.final_score)
    return certificate_standing(db, enrollment)


def completion_message(title: str, standing: CertificateStanding) -> str:
    pct = round(standing.percentage)
    if standing.passed:
        return (
            f'Congratulations! You completed "{title}" with {pct}%. '
            "You can now purchase your certificate."
        )
    return (
        f'You completed "{title}" with {pct}%. '
        f"A score of {standing.pass_percentage}% is required for a certificate."
    )


class EnrollmentService:

    def __init__(
        self,
        notifier: Optional[NotificationService] = None,
        auditor: Optional[AuditService] = None,
    ) -> None:
        self.notifier = notifier or notification_service
        self.auditor = auditor or audit_service

    @staticmethod
    def get_enrollment(db: Session, enrollment_id: UUID) -> Enrollment:
        enrollment = EnrollmentRepository.get(db, enrollment_id)
        if enrollment is None:
            raise NotFoundError.for_entity("Enrollment", enrollment_id)
        return enrollment

    @staticmethod
    def _check_access(enrollment: Enrollment, user_id: UUID, is_admin: bool) -> None:
        if not is_admin and enrollment.user_id != user_id:
            raise UnauthorizedError("Enrollment belongs to another user")

    def enroll(self, db: Session, user_id: UUID, internship_id: UUID) -> Enrollment:
        with transaction(db):
            internship = CatalogRepository.get_internship(db, internship_id)
            if internship is None:
                raise NotFoundError.for_entity("Internship", internship_id)
            if not internship.is_active:
                raise ValidationError("Internship is not open for enrollment")
            if EnrollmentRepository.find(db, user_id, internship_id) is not None:
                raise AlreadyEnrolledError(
                    "Already enrolled in this internship",
                    {"internship_id": str(internship_id)},
                )
            enrollment = EnrollmentRepository.create(db, user_id, internship_id)
            enrollment_id = enrollment.id
            title = internship.title

        logger.info("enrollment.created enrollment_id=%s user_id=%s internship_id=%s", enrollment_id, user_id, internship_id)
        self.notifier.notify(
            user_id,
            "Enrollment Successful",
            f'You are enrolled in "{title}". Task 1 is now unlocked.',
            NotificationKind.SUCCESS,
        )
        self.auditor.record("ENROLLMENT_CREATED", user_id, f"Enrolled in {title}")
        return enrollment

    def unenroll(self, db: Session, enrollment_id: UUID, user_id: UUID, is_admin: bool = False) -> UnenrollResponse:
        """Destructively remove an enrollment with all its submissions.

        Refused while a certificate payment is pending or a certificate has
        been issued for the enrollment.
        """
        with transaction(db):
            enrollment = EnrollmentRepository.get(db, enrollment_id, for_update=True)
            if enrollment is None:
                raise NotFoundError.for_entity("Enrollment", enrollment_id)
            self._check_access(enrollment, user_id, is_admin)

            pending = (
                db.query(Payment.id)
                .filter(
                    Payment.enrollment_id == enrollment_id,
                    Payment.payment_type == PaymentType.CERTIFICATE,
                    Payment.payment_status == PaymentStatus.PENDING,
                )
                .count()
            )
            if pending:
                raise ConflictError("A certificate payment is pending for this enrollment")
            if db.query(CertificateSession.id).filter(CertificateSession.enrollment_id == enrollment_id).count():
                raise ConflictError("A certificate has been issued for this enrollment")

            owner_id = enrollment.user_id
            internship_id = enrollment.internship_id
            title = enrollment.internship.title
            removed = EnrollmentRepository.delete_cascade(db, enrollment_id)

        logger.info("enrollment.deleted enrollment_id=%s removed=%s", enrollment_id, removed)
        self.auditor.record(
            "ENROLLMENT_DELETED",
            user_id,
            f"Unenrolled from {title} ({removed['submissions']} submissions removed)",
        )
        self.notifier.notify(
            owner_id,
            "Unenrolled",
            f'You have been unenrolled from "{title}". Your progress has been deleted.',
            NotificationKind.INFO,
        )
        return UnenrollResponse(
            enrollment_id=enrollment_id,
            internship_id=internship_id,
            submissions_removed=removed["submissions"],
            message=f"Unenrolled from {title}",
        )

    @staticmethod
    def list_for_user(db: Session, user_id: UUID) -> List[Enrollment]:
        return EnrollmentRepository.list_for_user(db, user_id)

    def get_enrollment_progress(
        self,
        db: Session,
        enrollment_id: UUID,
        user_id: UUID,
        is_admin: bool = False,
    ) -> EnrollmentProgress:
        enrollment = self.get_enrollment(db, enrollment_id)
        self._check_access(enrollment, user_id, is_admin)
        internship: Internship = enrollment.internship
        now = timekeeper.now()

        unlocks = {u.task_id: u for u in SubmissionRepository.list_task_unlocks(db, enrollment.id)}
        by_task = {}
        for sub in SubmissionRepository.list_for_enrollment(db, enrollment.id):
            by_task.setdefault(sub.task_id, []).append(sub)
        windows = {}
        for opp in SubmissionRepository.list_opportunities(db, enrollment.id):
            if opp.is_open(now):
                current = windows.get(opp.task_id)
                if current is None or opp.allowed_until > current:
                    windows[opp.task_id] = opp.allowed_until

        tasks = []
        approved = 0
        active = enrollment.status == EnrollmentStatus.ACTIVE
        open_through = CatalogRepository.unlocked_through(db, internship.id, enrollment.current_unlocked_task)
        for task in CatalogRepository.list_tasks(db, internship.id, active_only=True):
            attempts = sorted(by_task.get(task.id, []), key=lambda s: s.attempt_number)
            latest = attempts[-1] if attempts else None
            unlocked = task.task_number <= open_through
            window = windows.get(task.id)
            if latest is not None and latest.status == SubmissionStatus.APPROVED:
                approved += 1

            if latest is None:
                can_submit = unlocked
            elif latest.status == SubmissionStatus.REJECTED:
                can_submit = window is not None
            else:
                can_submit = False
            can_submit = active and can_submit and len(attempts) < task.max_attempts

            unlock = unlocks.get(task.id)
            tasks.append(
                TaskProgress(
                    task_id=task.id,
                    task_number=task.task_number,
                    title=task.title,
                    points=task.points,
                    submission_type=task.submission_type,
                    max_attempts=task.max_attempts,
                    attempts_used=len(attempts),
                    is_unlocked=unlocked,
                    can_submit=can_submit,
                    latest_status=latest.status if latest else None,
                    latest_score=latest.score if latest else None,
                    admin_feedback=latest.admin_feedback if latest else None,
                    unlocks_at=unlock.unlocks_at if unlock else None,
                    resubmission_allowed_until=window,
                )
            )

        standing = certificate_standing(db, enrollment, internship)
        return EnrollmentProgress(
            enrollment=EnrollmentResponse.model_validate(enrollment),
            internship_title=internship.title,
            total_tasks=len(tasks),
            approved_tasks=approved,
            tasks=tasks,
            certificate=CertificateStandingResponse(
                final_score=standing.final_score,
                max_points=standing.max_points,
                percentage=round(standing.percentage, 2),
                pass_percentage=standing.pass_percentage,
                passed=standing.passed,
                eligible=standing.eligible,
                reason=standing.ineligibility_reason(),
            ),
        )


enrollment_service = EnrollmentService()
