from datetime import datetime, timedelta, timezone

import pytest

from internhub.common import timekeeper
from internhub.common.errors import (
    AttemptLimitExceededError,
    ConflictError,
    NotEnrolledError,
    NotFoundError,
    TaskLockedError,
    ValidationError,
)
from internhub.features.catalog.models import SubmissionType
from internhub.features.enrollments.models import Enrollment
from internhub.features.enrollments.service import enrollment_service
from internhub.features.submissions.models import (
    ResubmissionOpportunity,
    Submission,
    SubmissionStatus,
    TaskUnlock,
)
from internhub.features.submissions.schemas import SubmissionPayload
from internhub.features.submissions.service import submission_service

APPROVED = SubmissionStatus.APPROVED
REJECTED = SubmissionStatus.REJECTED


def _approved_sum(db, enrollment_id):
    rows = db.query(Submission).filter(Submission.enrollment_id == enrollment_id, Submission.status == APPROVED).all()
    return sum(r.score for r in rows)


def _submit_and_review(db, intern, admin, task, payload, decision=APPROVED, score=None):
    sub = submission_service.submit(db, intern.id, task.id, payload)
    return submission_service.review(db, sub.id, admin.id, decision, score=score, feedback="ok")


def test_submit_creates_pending_attempt_without_moving_cursor(db, intern, make_internship, task_of, github_payload):
    internship = make_internship()
    enrollment = enrollment_service.enroll(db, intern.id, internship.id)

    sub = submission_service.submit(db, intern.id, task_of(internship, 1).id, github_payload)

    assert sub.status == SubmissionStatus.PENDING
    assert sub.attempt_number == 1
    assert sub.github_url == "https://github.com/intern/project"
    db.refresh(enrollment)
    assert enrollment.current_unlocked_task == 1


def test_submit_records_advisory_unlock_delay(db, intern, make_internship, task_of, github_payload):
    timekeeper.freeze(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))
    internship = make_internship()
    enrollment = enrollment_service.enroll(db, intern.id, internship.id)
    task = task_of(internship, 1)

    submission_service.submit(db, intern.id, task.id, github_payload)

    unlock = db.query(TaskUnlock).filter(TaskUnlock.enrollment_id == enrollment.id).one()
    assert unlock.unlocks_at == datetime(2026, 3, 1, 21, 0, tzinfo=timezone.utc)
    assert unlock.is_unlocked is False

    # Passing the delay never approves anything on its own
    timekeeper.advance(timedelta(days=2))
    db.refresh(enrollment)
    assert enrollment.current_unlocked_task == 1


def test_submit_locked_task_fails(db, intern, make_internship, task_of, github_payload):
    internship = make_internship()
    enrollment_service.enroll(db, intern.id, internship.id)

    with pytest.raises(TaskLockedError):
        submission_service.submit(db, intern.id, task_of(internship, 2).id, github_payload)


def test_submit_requires_active_enrollment(db, intern, make_internship, task_of, github_payload):
    internship = make_internship()
    with pytest.raises(NotEnrolledError):
        submission_service.submit(db, intern.id, task_of(internship, 1).id, github_payload)


def test_submit_unknown_task(db, intern, github_payload):
    import uuid

    with pytest.raises(NotFoundError):
        submission_service.submit(db, intern.id, uuid.uuid4(), github_payload)


def test_submit_inactive_task_is_locked(db, intern, make_internship, task_of, github_payload):
    internship = make_internship()
    enrollment_service.enroll(db, intern.id, internship.id)
    task = task_of(internship, 1)
    task.is_active = False
    db.commit()

    with pytest.raises(TaskLockedError):
        submission_service.submit(db, intern.id, task.id, github_payload)


def test_pending_submission_blocks_another(db, intern, make_internship, task_of, github_payload):
    internship = make_internship()
    enrollment_service.enroll(db, intern.id, internship.id)
    task = task_of(internship, 1)
    submission_service.submit(db, intern.id, task.id, github_payload)

    with pytest.raises(ConflictError):
        submission_service.submit(db, intern.id, task.id, github_payload)


def test_payload_must_match_task_type(db, intern, make_internship, task_of):
    internship = make_internship(submission_type=SubmissionType.FORM)
    enrollment_service.enroll(db, intern.id, internship.id)
    task = task_of(internship, 1)

    with pytest.raises(ValidationError):
        submission_service.submit(db, intern.id, task.id, SubmissionPayload(github_url="https://github.com/x/y"))

    sub = submission_service.submit(db, intern.id, task.id, SubmissionPayload(form_data={"answer": "42"}))
    assert sub.form_data == {"answer": "42"}


def test_file_submission_is_stored(db, intern, make_internship, task_of):
    internship = make_internship(submission_type=SubmissionType.FILE)
    enrollment_service.enroll(db, intern.id, internship.id)
    task = task_of(internship, 1)

    with pytest.raises(ValidationError):
        submission_service.submit(db, intern.id, task.id, SubmissionPayload())

    sub = submission_service.submit(
        db, intern.id, task.id, SubmissionPayload(file_bytes=b"%PDF-1.4 report", filename="report.pdf")
    )
    assert sub.file_url.startswith("/uploads/submissions/")
    assert sub.file_url.endswith("report.pdf")
    assert submission_service.storage.resolve(sub.file_url).read_bytes() == b"%PDF-1.4 report"


def test_approval_advances_cursor_by_exactly_one(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship(tasks=4)
    enrollment = enrollment_service.enroll(db, intern.id, internship.id)

    for k in range(1, 5):
        _submit_and_review(db, intern, admin, task_of(internship, k), github_payload)
        db.refresh(enrollment)
        assert enrollment.current_unlocked_task == k + 1

    # N active tasks: the cursor stops at N + 1
    assert enrollment.current_unlocked_task == 5


def test_review_defaults_and_clamps_score(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship(tasks=3, points=[10, 20, 5])
    enrollment_service.enroll(db, intern.id, internship.id)

    first = _submit_and_review(db, intern, admin, task_of(internship, 1), github_payload)
    assert first.score == 10
    second = _submit_and_review(db, intern, admin, task_of(internship, 2), github_payload, score=99)
    assert second.score == 20
    assert second.next_task_unlocked is True
    assert second.reviewed_by == admin.id
    assert second.reviewed_at is not None


def test_final_score_is_sum_of_approved(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship(tasks=3)
    enrollment = enrollment_service.enroll(db, intern.id, internship.id)
    task1 = task_of(internship, 1)

    _submit_and_review(db, intern, admin, task1, github_payload, decision=REJECTED)
    db.refresh(enrollment)
    assert enrollment.final_score == 0 == _approved_sum(db, enrollment.id)

    _submit_and_review(db, intern, admin, task1, github_payload, score=7)
    db.refresh(enrollment)
    assert enrollment.final_score == 7 == _approved_sum(db, enrollment.id)

    _submit_and_review(db, intern, admin, task_of(internship, 2), github_payload, score=9)
    db.refresh(enrollment)
    assert enrollment.final_score == 16 == _approved_sum(db, enrollment.id)


def test_review_is_one_shot(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship()
    enrollment_service.enroll(db, intern.id, internship.id)
    reviewed = _submit_and_review(db, intern, admin, task_of(internship, 1), github_payload)

    with pytest.raises(ConflictError):
        submission_service.review(db, reviewed.id, admin.id, REJECTED, feedback="changed my mind")


def test_review_unknown_submission(db, admin):
    import uuid

    with pytest.raises(NotFoundError):
        submission_service.review(db, uuid.uuid4(), admin.id, APPROVED)


def test_rejection_keeps_cursor_and_zeroes_score(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship()
    enrollment = enrollment_service.enroll(db, intern.id, internship.id)

    rejected = _submit_and_review(db, intern, admin, task_of(internship, 1), github_payload, decision=REJECTED, score=8)

    assert rejected.score == 0
    assert rejected.next_task_unlocked is False
    db.refresh(enrollment)
    assert enrollment.current_unlocked_task == 1


def test_resubmission_window(db, intern, admin, make_internship, task_of, github_payload):
    review_time = datetime(2026, 5, 4, 10, 0, tzinfo=timezone.utc)
    internship = make_internship()
    enrollment = enrollment_service.enroll(db, intern.id, internship.id)
    task = task_of(internship, 1)

    timekeeper.freeze(review_time - timedelta(hours=2))
    sub = submission_service.submit(db, intern.id, task.id, github_payload)
    timekeeper.freeze(review_time)
    submission_service.review(db, sub.id, admin.id, REJECTED, feedback="Missing README")

    opp = db.query(ResubmissionOpportunity).filter(ResubmissionOpportunity.enrollment_id == enrollment.id).one()
    assert opp.allowed_until == review_time + timedelta(days=7)
    assert opp.used_at is None

    timekeeper.advance(timedelta(days=3))
    again = submission_service.submit(db, intern.id, task.id, github_payload)
    assert again.attempt_number == 2
    db.refresh(opp)
    assert opp.used_at == review_time + timedelta(days=3)


def test_resubmission_after_window_fails(db, intern, admin, make_internship, task_of, github_payload):
    review_time = datetime(2026, 5, 4, 10, 0, tzinfo=timezone.utc)
    internship = make_internship()
    enrollment_service.enroll(db, intern.id, internship.id)
    task = task_of(internship, 1)

    timekeeper.freeze(review_time - timedelta(hours=2))
    sub = submission_service.submit(db, intern.id, task.id, github_payload)
    timekeeper.freeze(review_time)
    submission_service.review(db, sub.id, admin.id, REJECTED, feedback="Missing README")

    timekeeper.advance(timedelta(days=8))
    with pytest.raises(TaskLockedError):
        submission_service.submit(db, intern.id, task.id, github_payload)


def test_attempt_limit(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship(max_attempts=2)
    enrollment_service.enroll(db, intern.id, internship.id)
    task = task_of(internship, 1)

    _submit_and_review(db, intern, admin, task, github_payload, decision=REJECTED)
    _submit_and_review(db, intern, admin, task, github_payload, decision=REJECTED)

    with pytest.raises(AttemptLimitExceededError):
        submission_service.submit(db, intern.id, task.id, github_payload)


def test_approved_task_cannot_be_resubmitted(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship()
    enrollment_service.enroll(db, intern.id, internship.id)
    task = task_of(internship, 1)
    _submit_and_review(db, intern, admin, task, github_payload)

    with pytest.raises(ConflictError):
        submission_service.submit(db, intern.id, task.id, github_payload)


def test_cursor_never_decreases(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship(tasks=3)
    enrollment = enrollment_service.enroll(db, intern.id, internship.id)
    seen = []

    _submit_and_review(db, intern, admin, task_of(internship, 1), github_payload)
    db.refresh(enrollment)
    seen.append(enrollment.current_unlocked_task)
    _submit_and_review(db, intern, admin, task_of(internship, 2), github_payload, decision=REJECTED)
    db.refresh(enrollment)
    seen.append(enrollment.current_unlocked_task)
    _submit_and_review(db, intern, admin, task_of(internship, 2), github_payload)
    db.refresh(enrollment)
    seen.append(enrollment.current_unlocked_task)

    assert seen == sorted(seen) == [2, 2, 3]
    assert all(c <= 4 for c in seen)


def test_admin_list_filters_by_status(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship()
    other = make_internship(title="Data Science")
    enrollment_service.enroll(db, intern.id, internship.id)
    enrollment_service.enroll(db, intern.id, other.id)
    _submit_and_review(db, intern, admin, task_of(internship, 1), github_payload)
    submission_service.submit(db, intern.id, task_of(other, 1).id, github_payload)

    pending = submission_service.admin_list(db, status=SubmissionStatus.PENDING)
    assert pending["pagination"]["total"] == 1
    by_internship = submission_service.admin_list(db, internship_id=internship.id)
    assert [s.status for s in by_internship["items"]] == [APPROVED]
    assert len(submission_service.list_for_user(db, intern.id)) == 2
    assert db.query(Enrollment).count() == 2
