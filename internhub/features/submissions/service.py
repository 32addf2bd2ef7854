"""Submission workflow: the unlock gate on submit and the review transition."""

import logging
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from internhub.adapters.file_storage import LocalFileStorage, file_storage
from internhub.common import timekeeper
from internhub.common.errors import (
    AttemptLimitExceededError,
    ConflictError,
    NotEnrolledError,
    NotFoundError,
    TaskLockedError,
    UnauthorizedError,
    ValidationError,
)
from internhub.common.utils import clean_text, paginate_query
from internhub.core.config import get_settings
from internhub.db.session import transaction
from internhub.features.audit.service import AuditService, audit_service
from internhub.features.catalog.models import SubmissionType, Task
from internhub.features.catalog.repository import CatalogRepository
from internhub.features.enrollments.models import EnrollmentStatus
from internhub.features.enrollments.repository import EnrollmentRepository
from internhub.features.enrollments.service import completion_message, detect_completion
from internhub.features.notifications.models import NotificationKind
from internhub.features.notifications.service import NotificationService, notification_service
from .models import Submission, SubmissionStatus
from .repository import SubmissionRepository
from .schemas import SubmissionPayload

logger = logging.getLogger("submissions.service")

_BLOCKING_STATUSES = (SubmissionStatus.PENDING, SubmissionStatus.APPROVED)


class SubmissionService:

    def __init__(
        self,
        storage: Optional[LocalFileStorage] = None,
        notifier: Optional[NotificationService] = None,
        auditor: Optional[AuditService] = None,
    ) -> None:
        self.storage = storage or file_storage
        self.notifier = notifier or notification_service
        self.auditor = auditor or audit_service

    def _content_for(self, task: Task, payload: SubmissionPayload) -> Dict[str, Any]:
        if task.submission_type == SubmissionType.GITHUB:
            url = clean_text(payload.github_url)
            if not url:
                raise ValidationError("GitHub URL is required for this task")
            if not url.startswith(("https://", "http://")):
                raise ValidationError("GitHub URL must be an http(s) link", {"github_url": url})
            return {"github_url": url}
        if task.submission_type == SubmissionType.FORM:
            if not payload.form_data:
                raise ValidationError("Form data is required for this task")
            return {"form_data": payload.form_data}
        if not payload.file_bytes:
            raise ValidationError("A file upload is required for this task")
        return {"file_url": self.storage.store_file(payload.file_bytes, "submissions", payload.filename)}

    def submit(self, db: Session, user_id: UUID, task_id: UUID, payload: SubmissionPayload) -> Submission:
        """Record a new attempt for a task.

        Checks run in order: task, enrollment, unlock gate (or an open
        resubmission window), no pending/approved attempt, attempt limit,
        payload shape. The unlock cursor is not moved here.
        """
        with transaction(db):
            task = CatalogRepository.get_task(db, task_id)
            if task is None:
                raise NotFoundError.for_entity("Task", task_id)
            if not task.is_active:
                raise TaskLockedError("Task is not active")

            enrollment = EnrollmentRepository.find(db, user_id, task.internship_id, for_update=True)
            if enrollment is None or enrollment.status != EnrollmentStatus.ACTIVE:
                raise NotEnrolledError(
                    "No active enrollment for this internship",
                    {"internship_id": str(task.internship_id)},
                )

            now = timekeeper.now()
            latest = SubmissionRepository.latest_for_task(db, enrollment.id, task.id)
            opportunity = SubmissionRepository.open_opportunity(db, enrollment.id, task.id, now)

            if latest is not None and latest.status == SubmissionStatus.REJECTED:
                if opportunity is None:
                    raise TaskLockedError("Resubmission window has closed for this task")
            else:
                open_through = CatalogRepository.unlocked_through(
                    db, task.internship_id, enrollment.current_unlocked_task
                )
                if task.task_number > open_through and opportunity is None:
                    raise TaskLockedError(
                        f"Task {task.task_number} is locked. Complete task {open_through} first",
                        {"task_number": task.task_number, "current_unlocked_task": open_through},
                    )

            if latest is not None and latest.status in _BLOCKING_STATUSES:
                raise ConflictError(
                    f"Task already has a {latest.status.value.lower()} submission",
                    {"submission_id": str(latest.id)},
                )

            attempts = SubmissionRepository.count_attempts(db, enrollment.id, task.id)
            if attempts >= task.max_attempts:
                raise AttemptLimitExceededError(
                    f"Maximum attempts ({task.max_attempts}) reached for this task",
                    {"max_attempts": task.max_attempts},
                )

            content = self._content_for(task, payload)
            submission = SubmissionRepository.create(
                db,
                enrollment_id=enrollment.id,
                task_id=task.id,
                user_id=user_id,
                attempt_number=attempts + 1,
                submission_type=task.submission_type,
                status=SubmissionStatus.PENDING,
                score=0,
                submitted_at=now,
                **content,
            )
            SubmissionRepository.schedule_task_unlock(
                db, enrollment.id, task.id, now + timedelta(hours=task.wait_time_hours)
            )
            if opportunity is not None:
                opportunity.used_at = now

            submission_id = submission.id
            task_number = task.task_number
            task_title = task.title

        logger.info(
            "submission.created submission_id=%s task_number=%s attempt=%s user_id=%s",
            submission_id, task_number, attempts + 1, user_id,
        )
        self.notifier.notify(
            user_id,
            "Task Submitted",
            f'Your submission for Task {task_number}: "{task_title}" is awaiting review.',
            NotificationKind.INFO,
        )
        return submission

    def review(
        self,
        db: Session,
        submission_id: UUID,
        reviewer_id: UUID,
        decision: SubmissionStatus,
        score: Optional[int] = None,
        feedback: Optional[str] = None,
    ) -> Submission:
        """One-shot review of a PENDING submission.

        The enrollment row is locked before the submission row so concurrent
        reviews on one enrollment serialize around the score recompute.
        """
        if decision not in (SubmissionStatus.APPROVED, SubmissionStatus.REJECTED):
            raise ValidationError("Decision must be APPROVED or REJECTED")
        settings = get_settings()
        completed = None

        with transaction(db):
            peek = SubmissionRepository.get(db, submission_id)
            if peek is None:
                raise NotFoundError.for_entity("Submission", submission_id)
            enrollment = EnrollmentRepository.get(db, peek.enrollment_id, for_update=True)
            submission = SubmissionRepository.get(db, submission_id, for_update=True)
            if submission.status != SubmissionStatus.PENDING:
                raise ConflictError(
                    f"Submission has already been reviewed ({submission.status.value})",
                    {"status": submission.status.value},
                )

            task = submission.task
            now = timekeeper.now()
            submission.status = decision
            submission.admin_feedback = clean_text(feedback)
            submission.reviewed_at = now
            submission.reviewed_by = reviewer_id

            if decision == SubmissionStatus.APPROVED:
                awarded = task.points if score is None else max(0, min(score, task.points))
                submission.score = awarded
                submission.next_task_unlocked = True

                # Next active task; past the last one the cursor rests at highest + 1
                target = CatalogRepository.next_active_task_number(db, task.internship_id, task.task_number)
                if target is None:
                    highest = CatalogRepository.highest_active_task_number(db, task.internship_id) or 0
                    target = max(highest, task.task_number) + 1
                enrollment.current_unlocked_task = max(enrollment.current_unlocked_task, target)
                db.flush()
                enrollment.final_score = SubmissionRepository.sum_approved_scores(db, enrollment.id)

                unlock = SubmissionRepository.get_task_unlock(db, enrollment.id, task.id)
                if unlock is not None:
                    unlock.is_unlocked = True

                completed = detect_completion(db, enrollment)
            else:
                submission.score = 0
                SubmissionRepository.create_opportunity(
                    db,
                    enrollment.id,
                    task.id,
                    submission.id,
                    now + timedelta(days=settings.resubmission_window_days),
                )
                db.flush()
                enrollment.final_score = SubmissionRepository.sum_approved_scores(db, enrollment.id)

            intern_id = submission.user_id
            task_number = task.task_number
            task_title = task.title
            awarded = submission.score
            internship_title = enrollment.internship.title
            cursor = enrollment.current_unlocked_task

        logger.info(
            "review.%s submission_id=%s reviewer_id=%s score=%s cursor=%s",
            decision.value.lower(), submission_id, reviewer_id, awarded, cursor,
        )
        if decision == SubmissionStatus.APPROVED:
            self.notifier.notify(
                intern_id,
                "Task Approved",
                f'Task {task_number}: "{task_title}" was approved with {awarded} points.',
                NotificationKind.SUCCESS,
            )
        else:
            note = clean_text(feedback) or "No feedback provided"
            self.notifier.notify(
                intern_id,
                "Task Needs Revision",
                f'Task {task_number}: "{task_title}" needs revision. Feedback: {note}. '
                f"You can resubmit within {settings.resubmission_window_days} days.",
                NotificationKind.WARNING,
            )
        if completed is not None:
            self.notifier.notify(
                intern_id,
                "Internship Completed",
                completion_message(internship_title, completed),
                NotificationKind.SUCCESS if completed.passed else NotificationKind.INFO,
            )
        self.auditor.record(
            f"SUBMISSION_{decision.value}",
            reviewer_id,
            f"Task {task_number} submission {submission_id} reviewed with score {awarded}",
        )
        return submission

    def file_for(self, db: Session, submission_id: UUID, user_id: UUID, is_admin: bool = False) -> Path:
        submission = SubmissionRepository.get(db, submission_id)
        if submission is None:
            raise NotFoundError.for_entity("Submission", submission_id)
        if not is_admin and submission.user_id != user_id:
            raise UnauthorizedError("Submission belongs to another user")
        if not submission.file_url:
            raise NotFoundError("Submission has no uploaded file", {"submission_id": str(submission_id)})
        return self.storage.resolve(submission.file_url)

    @staticmethod
    def list_for_user(db: Session, user_id: UUID) -> List[Submission]:
        return SubmissionRepository.list_for_user(db, user_id)

    @staticmethod
    def admin_list(
        db: Session,
        status: Optional[SubmissionStatus] = None,
        internship_id: Optional[UUID] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Dict[str, Any]:
        return paginate_query(SubmissionRepository.admin_query(db, status, internship_id), page, per_page)


submission_service = SubmissionService()
