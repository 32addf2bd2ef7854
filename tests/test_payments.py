import pytest

from internhub.common.errors import ConflictError, UnauthorizedError, ValidationError
from internhub.features.certificates.models import CertificateSession, CertificateStatus
from internhub.features.certification.service import is_eligible_for_certificate
from internhub.features.enrollments.service import enrollment_service
from internhub.features.payments.models import PaymentStatus
from internhub.features.payments.service import payment_service
from internhub.features.submissions.models import SubmissionStatus
from internhub.features.submissions.service import submission_service


@pytest.fixture
def completed_enrollment(db, intern, admin, make_internship, task_of, github_payload):
    def _complete(user=None, title="Backend Engineering"):
        user = user or intern
        internship = make_internship(tasks=2, points=10, certificate_price=499, title=title)
        enrollment = enrollment_service.enroll(db, user.id, internship.id)
        for n in (1, 2):
            sub = submission_service.submit(db, user.id, task_of(internship, n).id, github_payload)
            submission_service.review(db, sub.id, admin.id, SubmissionStatus.APPROVED)
        db.refresh(enrollment)
        return enrollment

    return _complete


def _pay(db, enrollment, user_id, txn="UTR123456"):
    payment = payment_service.initiate_certificate_payment(db, enrollment.id, user_id)
    return payment_service.upload_proof(db, payment.id, user_id, txn, b"screenshot-bytes", "proof.png")


def test_initiate_creates_pending_payment(db, intern, completed_enrollment):
    enrollment = completed_enrollment()

    payment = payment_service.initiate_certificate_payment(db, enrollment.id, intern.id)

    assert payment.payment_status == PaymentStatus.PENDING
    assert payment.amount == 499
    assert payment.enrollment_id == enrollment.id


def test_initiate_requires_eligibility(db, intern, make_internship):
    internship = make_internship(tasks=2)
    enrollment = enrollment_service.enroll(db, intern.id, internship.id)

    with pytest.raises(ValidationError) as exc:
        payment_service.initiate_certificate_payment(db, enrollment.id, intern.id)
    assert "Complete all tasks" in exc.value.message


def test_initiate_owner_only(db, make_user, completed_enrollment):
    enrollment = completed_enrollment()
    stranger = make_user()

    with pytest.raises(UnauthorizedError):
        payment_service.initiate_certificate_payment(db, enrollment.id, stranger.id)


def test_duplicate_pending_payment_conflicts(db, intern, completed_enrollment):
    enrollment = completed_enrollment()
    payment_service.initiate_certificate_payment(db, enrollment.id, intern.id)

    with pytest.raises(ConflictError):
        payment_service.initiate_certificate_payment(db, enrollment.id, intern.id)


def test_upload_proof_requires_transaction_and_file(db, intern, completed_enrollment):
    enrollment = completed_enrollment()
    payment = payment_service.initiate_certificate_payment(db, enrollment.id, intern.id)

    with pytest.raises(ValidationError):
        payment_service.upload_proof(db, payment.id, intern.id, "   ", b"bytes", "p.png")
    with pytest.raises(ValidationError):
        payment_service.upload_proof(db, payment.id, intern.id, "UTR1", None)

    updated = payment_service.upload_proof(db, payment.id, intern.id, " UTR1 ", b"bytes", "p.png")
    assert updated.transaction_id == "UTR1"
    assert updated.payment_proof_url.startswith("/uploads/payments/")
    assert updated.proof_submitted_at is not None
    assert updated.payment_status == PaymentStatus.PENDING


def test_verify_without_proof_fails(db, intern, admin, completed_enrollment):
    enrollment = completed_enrollment()
    payment = payment_service.initiate_certificate_payment(db, enrollment.id, intern.id)

    with pytest.raises(ValidationError):
        payment_service.verify_payment(db, payment.id, admin.id, "UTR123456")

    db.refresh(payment)
    assert payment.payment_status == PaymentStatus.PENDING
    assert db.query(CertificateSession).count() == 0


def test_verify_requires_verified_transaction_id(db, intern, admin, completed_enrollment):
    enrollment = completed_enrollment()
    payment = _pay(db, enrollment, intern.id)

    with pytest.raises(ValidationError):
        payment_service.verify_payment(db, payment.id, admin.id, "")


def test_verify_issues_certificate(db, intern, admin, completed_enrollment):
    enrollment = completed_enrollment()
    payment = _pay(db, enrollment, intern.id)

    result = payment_service.verify_payment(db, payment.id, admin.id, "UTR123456")

    assert result.payment.payment_status == PaymentStatus.VERIFIED
    assert result.payment.verified_transaction_id == "UTR123456"
    assert result.certificate_number.startswith("CERT-")
    session = db.query(CertificateSession).one()
    assert session.certificate_number == result.certificate_number
    assert session.status == CertificateStatus.ISSUED
    assert session.payment_id == payment.id
    db.refresh(enrollment)
    assert enrollment.certificate_purchased is True
    assert is_eligible_for_certificate(db, enrollment) is False


def test_verified_payment_is_terminal(db, intern, admin, completed_enrollment):
    enrollment = completed_enrollment()
    payment = _pay(db, enrollment, intern.id)
    payment_service.verify_payment(db, payment.id, admin.id, "UTR123456")

    with pytest.raises(ConflictError):
        payment_service.verify_payment(db, payment.id, admin.id, "UTR123456")
    with pytest.raises(ConflictError):
        payment_service.reject_payment(db, payment.id, admin.id, "duplicate")
    with pytest.raises(ValidationError):
        payment_service.initiate_certificate_payment(db, enrollment.id, intern.id)


def test_certificate_numbers_are_distinct(db, make_user, admin, completed_enrollment):
    numbers = set()
    for i in range(5):
        user = make_user()
        enrollment = completed_enrollment(user=user, title=f"Track {i}")
        payment = _pay(db, enrollment, user.id, txn=f"UTR{i}")
        numbers.add(payment_service.verify_payment(db, payment.id, admin.id, f"UTR{i}").certificate_number)

    assert len(numbers) == 5


def test_reject_keeps_enrollment_eligible(db, intern, admin, completed_enrollment):
    enrollment = completed_enrollment()
    payment = _pay(db, enrollment, intern.id)

    with pytest.raises(ValidationError):
        payment_service.reject_payment(db, payment.id, admin.id, "  ")

    rejected = payment_service.reject_payment(db, payment.id, admin.id, "Amount mismatch")
    assert rejected.payment_status == PaymentStatus.REJECTED
    assert rejected.rejection_reason == "Amount mismatch"

    db.refresh(enrollment)
    assert enrollment.certificate_purchased is False
    assert is_eligible_for_certificate(db, enrollment) is True
    again = payment_service.initiate_certificate_payment(db, enrollment.id, intern.id)
    assert again.payment_status == PaymentStatus.PENDING


def test_upload_proof_on_rejected_payment_conflicts(db, intern, admin, completed_enrollment):
    enrollment = completed_enrollment()
    payment = _pay(db, enrollment, intern.id)
    payment_service.reject_payment(db, payment.id, admin.id, "Blurry")

    with pytest.raises(ConflictError):
        payment_service.upload_proof(db, payment.id, intern.id, "UTR9", b"bytes", "p.png")


def test_list_payments(db, intern, admin, completed_enrollment):
    enrollment = completed_enrollment()
    _pay(db, enrollment, intern.id)

    assert len(payment_service.list_for_user(db, intern.id)) == 1
    page = payment_service.admin_list(db, status=PaymentStatus.PENDING)
    assert page["pagination"]["total"] == 1
    assert payment_service.admin_list(db, status=PaymentStatus.VERIFIED)["items"] == []
