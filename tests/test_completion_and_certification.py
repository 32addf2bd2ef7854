import pytest

from internhub.features.certification.service import (
    certificate_standing,
    is_eligible,
    is_eligible_for_certificate,
)
from internhub.features.enrollments.models import EnrollmentStatus
from internhub.features.enrollments.service import completion_message, enrollment_service
from internhub.features.notifications.models import Notification
from internhub.features.submissions.models import SubmissionStatus
from internhub.features.submissions.service import submission_service


def _approve(db, intern, admin, task, payload, score=None):
    sub = submission_service.submit(db, intern.id, task.id, payload)
    return submission_service.review(db, sub.id, admin.id, SubmissionStatus.APPROVED, score=score)


@pytest.mark.parametrize(
    "completed, score, max_points, pass_pct, purchased, expected",
    [
        (True, 30, 30, 75, False, True),
        (True, 20, 30, 75, False, False),
        (False, 30, 30, 75, False, False),
        (True, 30, 30, 75, True, False),
        (True, 0, 0, 0, False, False),
        (True, 75, 100, 75, False, True),
        (True, 29, 100, 29, False, True),
        (True, 57, 100, 57, False, True),
        (True, 56, 100, 57, False, False),
        (True, 7, 12, 58, False, True),
        (True, 6, 12, 51, False, False),
    ],
)
def test_is_eligible(completed, score, max_points, pass_pct, purchased, expected):
    assert is_eligible(completed, score, max_points, pass_pct, purchased) is expected


def test_three_task_scenario(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship(tasks=3, points=10, pass_percentage=75)
    enrollment = enrollment_service.enroll(db, intern.id, internship.id)

    _approve(db, intern, admin, task_of(internship, 1), github_payload)
    _approve(db, intern, admin, task_of(internship, 2), github_payload)
    db.refresh(enrollment)
    standing = certificate_standing(db, enrollment)
    assert enrollment.final_score == 20
    assert round(standing.percentage) == 67
    assert not is_eligible(True, standing.final_score, standing.max_points, standing.pass_percentage, False)
    assert is_eligible_for_certificate(db, enrollment) is False

    _approve(db, intern, admin, task_of(internship, 3), github_payload)
    db.refresh(enrollment)
    assert enrollment.is_completed is True
    assert enrollment.status == EnrollmentStatus.COMPLETED
    assert enrollment.completion_date is not None
    assert enrollment.final_score == 30
    assert is_eligible_for_certificate(db, enrollment) is True


def test_denominator_uses_task_points(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship(tasks=2, points=[40, 60], pass_percentage=75)
    enrollment = enrollment_service.enroll(db, intern.id, internship.id)

    _approve(db, intern, admin, task_of(internship, 1), github_payload)
    _approve(db, intern, admin, task_of(internship, 2), github_payload, score=40)
    db.refresh(enrollment)

    standing = certificate_standing(db, enrollment)
    assert standing.max_points == 100
    assert standing.percentage == 80.0
    assert standing.eligible is True


def test_completion_is_score_independent(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship(tasks=2, points=10, pass_percentage=75)
    enrollment = enrollment_service.enroll(db, intern.id, internship.id)

    _approve(db, intern, admin, task_of(internship, 1), github_payload, score=2)
    _approve(db, intern, admin, task_of(internship, 2), github_payload, score=3)
    db.refresh(enrollment)

    assert enrollment.is_completed is True
    standing = certificate_standing(db, enrollment)
    assert standing.passed is False
    assert "Need 75%" in standing.ineligibility_reason()
    assert is_eligible_for_certificate(db, enrollment) is False


def test_completion_notification_reports_outcome(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship(tasks=1, points=10, title="Cloud Ops")
    enrollment_service.enroll(db, intern.id, internship.id)

    _approve(db, intern, admin, task_of(internship, 1), github_payload)

    titles = [n.title for n in db.query(Notification).filter(Notification.user_id == intern.id).all()]
    assert "Internship Completed" in titles
    note = db.query(Notification).filter(Notification.title == "Internship Completed").one()
    assert "100%" in note.message
    assert "Cloud Ops" in note.message


def test_eligibility_off_after_purchase(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship(tasks=1)
    enrollment = enrollment_service.enroll(db, intern.id, internship.id)
    _approve(db, intern, admin, task_of(internship, 1), github_payload)
    db.refresh(enrollment)
    assert is_eligible_for_certificate(db, enrollment) is True

    enrollment.certificate_purchased = True
    db.commit()

    assert is_eligible_for_certificate(db, enrollment) is False
    assert certificate_standing(db, enrollment).ineligibility_reason().startswith("Certificate already purchased")


def test_completion_message_variants(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship(tasks=1, points=10)
    enrollment = enrollment_service.enroll(db, intern.id, internship.id)
    _approve(db, intern, admin, task_of(internship, 1), github_payload, score=5)
    db.refresh(enrollment)

    message = completion_message("Backend Engineering", certificate_standing(db, enrollment))
    assert "50%" in message
    assert "75% is required" in message


def test_score_exactly_at_pass_mark_is_eligible(db, intern, admin, make_internship, task_of, github_payload):
    internship = make_internship(tasks=10, points=10, pass_percentage=57)
    enrollment = enrollment_service.enroll(db, intern.id, internship.id)

    for number, score in enumerate([6] * 9 + [3], start=1):
        _approve(db, intern, admin, task_of(internship, number), github_payload, score=score)
    db.refresh(enrollment)

    assert enrollment.is_completed is True
    assert enrollment.final_score == 57
    standing = certificate_standing(db, enrollment)
    assert standing.passed is True
    assert is_eligible_for_certificate(db, enrollment) is True
