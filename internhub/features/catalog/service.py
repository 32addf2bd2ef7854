import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from internhub.common import timekeeper
from internhub.common.errors import ConflictError, NotFoundError, ValidationError
from internhub.core.config import get_settings
from internhub.db.session import transaction
from internhub.features.audit.service import AuditService, audit_service
from internhub.features.certificates.models import CertificateSession
from internhub.features.certification.service import CertificateStanding
from internhub.features.enrollments.models import Enrollment, EnrollmentStatus
from internhub.features.enrollments.service import completion_message, detect_completion
from internhub.features.notifications.models import NotificationKind
from internhub.features.notifications.service import NotificationService, notification_service
from internhub.features.payments.models import Payment, PaymentStatus
from .models import Internship, Task
from .repository import CatalogRepository
from .schemas import (
    InternshipCreate,
    InternshipDeleted,
    InternshipDetail,
    InternshipPatch,
    TaskCreate,
    TaskPatch,
    TaskResponse,
)

logger = logging.getLogger("catalog.service")


class CatalogService:

    def __init__(
        self,
        notifier: Optional[NotificationService] = None,
        auditor: Optional[AuditService] = None,
    ) -> None:
        self.notifier = notifier or notification_service
        self.auditor = auditor or audit_service

    # ------------------------------------------------------------------
    # Internships
    # ------------------------------------------------------------------
    @staticmethod
    def get_internship(db: Session, internship_id: UUID) -> Internship:
        internship = CatalogRepository.get_internship(db, internship_id)
        if internship is None:
            raise NotFoundError.for_entity("Internship", internship_id)
        return internship

    @staticmethod
    def list_internships(db: Session, include_inactive: bool = False) -> List[Internship]:
        return CatalogRepository.list_internships(db, active_only=not include_inactive)

    def get_internship_detail(self, db: Session, internship_id: UUID) -> InternshipDetail:
        internship = self.get_internship(db, internship_id)
        detail = InternshipDetail.model_validate(internship)
        detail.tasks = [TaskResponse.model_validate(t) for t in CatalogRepository.list_tasks(db, internship.id)]
        detail.max_points = CatalogRepository.max_points(db, internship.id)
        return detail

    def create_internship(self, db: Session, payload: InternshipCreate, actor_id: UUID) -> Internship:
        settings = get_settings()
        data = {
            "title": payload.title,
            "description": payload.description,
            "duration_days": payload.duration_days or settings.default_duration_days,
            "certificate_price": (
                payload.certificate_price
                if payload.certificate_price is not None
                else settings.default_certificate_price
            ),
            "pass_percentage": (
                payload.pass_percentage
                if payload.pass_percentage is not None
                else settings.default_pass_percentage
            ),
        }
        with transaction(db):
            internship = CatalogRepository.create_internship(db, data)
            internship_id = internship.id

        logger.info("internship.created internship_id=%s actor_id=%s", internship_id, actor_id)
        self.auditor.record("INTERNSHIP_CREATED", actor_id, f"Internship created: {payload.title}")
        return internship

    def update_internship(self, db: Session, internship_id: UUID, patch: InternshipPatch, actor_id: UUID) -> Internship:
        changes = patch.changes()
        if "title" in changes:
            changes["title"] = changes["title"].strip()
            if not changes["title"]:
                raise ValidationError("Title must not be blank")

        with transaction(db):
            internship = self.get_internship(db, internship_id)
            for field, value in changes.items():
                setattr(internship, field, value)
            title = internship.title

        logger.info("internship.updated internship_id=%s fields=%s", internship_id, sorted(changes))
        self.auditor.record("INTERNSHIP_UPDATED", actor_id, f"Internship updated: {title} ({', '.join(sorted(changes)) or 'no changes'})")
        return internship

    def delete_internship(self, db: Session, internship_id: UUID, actor_id: UUID) -> InternshipDeleted:
        """Delete an internship and everything it owns in one transaction.

        Refused once any certificate has been issued for one of its
        enrollments. Outstanding certificate payments are rejected before
        being detached.
        """
        with transaction(db):
            internship = self.get_internship(db, internship_id)
            title = internship.title

            issued = (
                db.query(CertificateSession.id)
                .join(Enrollment, Enrollment.id == CertificateSession.enrollment_id)
                .filter(Enrollment.internship_id == internship_id)
                .count()
            )
            if issued:
                raise ConflictError(
                    "Internship has issued certificates and cannot be deleted",
                    {"certificates": issued},
                )

            affected_users = [
                row.user_id
                for row in db.query(Enrollment.user_id).filter(Enrollment.internship_id == internship_id).all()
            ]
            now = timekeeper.now()
            for payment in (
                db.query(Payment)
                .filter(Payment.internship_id == internship_id, Payment.payment_status == PaymentStatus.PENDING)
                .with_for_update()
                .all()
            ):
                payment.payment_status = PaymentStatus.REJECTED
                payment.rejection_reason = "Internship removed"
                payment.rejected_at = now

            totals = CatalogRepository.delete_internship_cascade(db, internship)

        logger.info("internship.deleted internship_id=%s totals=%s", internship_id, totals)
        self.auditor.record(
            "INTERNSHIP_DELETED",
            actor_id,
            f"Internship deleted: {title} ({totals['enrollments']} enrollments, {totals['tasks']} tasks removed)",
        )
        for user_id in affected_users:
            self.notifier.notify(
                user_id,
                "Internship Removed",
                f'The internship "{title}" has been removed by admin. Your enrollment and progress have been deleted.',
                NotificationKind.WARNING,
            )

        return InternshipDeleted(
            internship_id=internship_id,
            title=title,
            enrollments_removed=totals["enrollments"],
            submissions_removed=totals["submissions"],
            tasks_removed=totals["tasks"],
            payments_detached=totals["payments_detached"],
        )

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    @staticmethod
    def get_task(db: Session, task_id: UUID) -> Task:
        task = CatalogRepository.get_task(db, task_id)
        if task is None:
            raise NotFoundError.for_entity("Task", task_id)
        return task

    @staticmethod
    def list_tasks(db: Session, internship_id: UUID, active_only: bool = False) -> List[Task]:
        CatalogService.get_internship(db, internship_id)
        return CatalogRepository.list_tasks(db, internship_id, active_only=active_only)

    def create_task(self, db: Session, internship_id: UUID, payload: TaskCreate, actor_id: UUID) -> Task:
        """Append a task. Task numbers stay dense: only ``max + 1`` is accepted."""
        settings = get_settings()
        with transaction(db):
            # Lock the parent so two concurrent creates cannot take the same number
            internship = (
                db.query(Internship).filter(Internship.id == internship_id).with_for_update().first()
            )
            if internship is None:
                raise NotFoundError.for_entity("Internship", internship_id)

            expected = CatalogRepository.next_task_number(db, internship_id)
            if payload.task_number is not None and payload.task_number != expected:
                raise ValidationError(
                    f"Task numbers must be contiguous; next task number is {expected}",
                    {"expected": expected, "given": payload.task_number},
                )

            task = CatalogRepository.create_task(
                db,
                {
                    "internship_id": internship_id,
                    "task_number": expected,
                    "title": payload.title.strip(),
                    "description": payload.description.strip(),
                    "points": payload.points or settings.default_task_points,
                    "submission_type": payload.submission_type,
                    "wait_time_hours": (
                        payload.wait_time_hours
                        if payload.wait_time_hours is not None
                        else settings.default_wait_time_hours
                    ),
                    "max_attempts": payload.max_attempts or settings.default_max_attempts,
                },
            )
            task_id = task.id

        logger.info("task.created task_id=%s internship_id=%s number=%s", task_id, internship_id, expected)
        self.auditor.record("TASK_CREATED", actor_id, f"Task {expected} created for internship {internship_id}")
        return task

    def update_task(self, db: Session, task_id: UUID, patch: TaskPatch, actor_id: UUID) -> Task:
        changes = patch.changes()
        with transaction(db):
            task = self.get_task(db, task_id)
            deactivating = changes.get("is_active") is False and task.is_active
            for field, value in changes.items():
                setattr(task, field, value)
            number = task.task_number
            internship_id = task.internship_id
            completions = self._sweep_completions(db, internship_id) if deactivating else []

        logger.info("task.updated task_id=%s fields=%s", task_id, sorted(changes))
        self.auditor.record("TASK_UPDATED", actor_id, f"Task {number} updated ({', '.join(sorted(changes)) or 'no changes'})")
        self._notify_completions(completions)
        return task

    def delete_task(self, db: Session, task_id: UUID, actor_id: UUID) -> Task:
        """Retire a task.

        The row is kept (inactive) so task numbers stay dense and earlier
        submissions keep their task. Interns waiting on it move past it.
        """
        with transaction(db):
            task = self.get_task(db, task_id)
            if not task.is_active:
                raise ConflictError("Task is already deleted")
            task.is_active = False
            number = task.task_number
            internship_id = task.internship_id
            completions = self._sweep_completions(db, internship_id)

        logger.info("task.deleted task_id=%s internship_id=%s number=%s", task_id, internship_id, number)
        self.auditor.record("TASK_DELETED", actor_id, f"Task {number} deleted from internship {internship_id}")
        self._notify_completions(completions)
        return task

    @staticmethod
    def _sweep_completions(db: Session, internship_id: UUID) -> List[Tuple[UUID, str, CertificateStanding]]:
        """Complete active enrollments whose remaining active tasks are all approved."""
        db.flush()
        completed = []
        for enrollment in (
            db.query(Enrollment)
            .filter(Enrollment.internship_id == internship_id, Enrollment.status == EnrollmentStatus.ACTIVE)
            .with_for_update()
            .all()
        ):
            standing = detect_completion(db, enrollment)
            if standing is not None:
                completed.append((enrollment.user_id, enrollment.internship.title, standing))
        return completed

    def _notify_completions(self, completions: List[Tuple[UUID, str, CertificateStanding]]) -> None:
        for user_id, title, standing in completions:
            self.notifier.notify(
                user_id,
                "Internship Completed",
                completion_message(title, standing),
                NotificationKind.SUCCESS if standing.passed else NotificationKind.INFO,
            )

catalog_service = CatalogService()
