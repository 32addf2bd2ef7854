"""Racing workflow calls against a shared file-backed database.

Each transaction opens with ``BEGIN IMMEDIATE`` so SQLite serializes writers
the way row locks do on Postgres.
"""

import threading

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from internhub.adapters.file_storage import file_storage
from internhub.common.errors import ConflictError, DomainError
from internhub.db.base import Base
from internhub.features.audit.service import AuditService
from internhub.features.catalog.models import Internship, SubmissionType, Task
from internhub.features.certificates.models import CertificateSession
from internhub.features.enrollments.models import Enrollment
from internhub.features.enrollments.service import EnrollmentService
from internhub.features.notifications.models import Notification
from internhub.features.notifications.service import NotificationService
from internhub.features.payments.service import PaymentService
from internhub.features.submissions.models import Submission, SubmissionStatus
from internhub.features.submissions.repository import SubmissionRepository
from internhub.features.submissions.schemas import SubmissionPayload
from internhub.features.submissions.service import SubmissionService
from internhub.features.users.models import User, UserRole

APPROVED = SubmissionStatus.APPROVED


@pytest.fixture
def shared(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _autocommit_driver(dbapi_connection, _record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    notifier = NotificationService(session_factory=factory)
    auditor = AuditService(session_factory=factory)
    services = {
        "factory": factory,
        "enrollments": EnrollmentService(notifier=notifier, auditor=auditor),
        "submissions": SubmissionService(storage=file_storage, notifier=notifier, auditor=auditor),
        "payments": PaymentService(storage=file_storage, notifier=notifier, auditor=auditor),
    }
    try:
        yield services
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


def _seed(factory, tasks=3, pass_percentage=50):
    with factory() as s:
        intern = User(email="racer@example.com", name="Racer", role=UserRole.INTERN)
        admins = [User(email=f"admin{i}@example.com", name=f"Admin {i}", role=UserRole.ADMIN) for i in (1, 2)]
        internship = Internship(
            title="Race Track",
            description="Concurrent reviews",
            duration_days=35,
            certificate_price=499,
            pass_percentage=pass_percentage,
        )
        s.add_all([intern, *admins, internship])
        s.flush()
        task_rows = [
            Task(
                internship_id=internship.id,
                task_number=n,
                title=f"Task {n}",
                description="Lap",
                points=10,
                submission_type=SubmissionType.GITHUB,
                wait_time_hours=0,
                max_attempts=3,
            )
            for n in range(1, tasks + 1)
        ]
        s.add_all(task_rows)
        s.commit()
        return intern.id, [a.id for a in admins], [t.id for t in task_rows]


def _race(*calls):
    barrier = threading.Barrier(len(calls))
    outcomes = [None] * len(calls)

    def run(index, call):
        barrier.wait()
        try:
            outcomes[index] = call()
        except DomainError as exc:
            outcomes[index] = exc

    threads = [threading.Thread(target=run, args=(i, c)) for i, c in enumerate(calls)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    assert not any(t.is_alive() for t in threads)
    return outcomes


def _in_session(factory, fn):
    def call():
        with factory() as session:
            return fn(session)

    return call


def test_racing_reviews_of_one_submission_apply_once(shared):
    factory = shared["factory"]
    subs = shared["submissions"]
    intern_id, (admin_a, admin_b), task_ids = _seed(factory)
    payload = SubmissionPayload(github_url="https://github.com/racer/lap1")

    with factory() as s:
        enrollment_id = shared["enrollments"].enroll(s, intern_id, s.get(Task, task_ids[0]).internship_id).id
        submission_id = subs.submit(s, intern_id, task_ids[0], payload).id

    outcomes = _race(
        _in_session(factory, lambda s: subs.review(s, submission_id, admin_a, APPROVED)),
        _in_session(factory, lambda s: subs.review(s, submission_id, admin_b, APPROVED)),
    )

    assert sum(isinstance(o, ConflictError) for o in outcomes) == 1
    assert sum(isinstance(o, Submission) for o in outcomes) == 1
    with factory() as s:
        enrollment = s.get(Enrollment, enrollment_id)
        assert enrollment.current_unlocked_task == 2
        assert enrollment.final_score == 10
        approvals = s.query(Notification).filter(
            Notification.user_id == intern_id, Notification.title == "Task Approved"
        )
        assert approvals.count() == 1


def test_racing_reviews_on_one_enrollment_merge_scores(shared):
    factory = shared["factory"]
    subs = shared["submissions"]
    intern_id, (admin_a, admin_b), task_ids = _seed(factory)

    with factory() as s:
        internship_id = s.get(Task, task_ids[0]).internship_id
        enrollment_id = shared["enrollments"].enroll(s, intern_id, internship_id).id
        pending = []
        for task_id in task_ids[:2]:
            pending.append(
                SubmissionRepository.create(
                    s,
                    enrollment_id=enrollment_id,
                    task_id=task_id,
                    user_id=intern_id,
                    attempt_number=1,
                    submission_type=SubmissionType.GITHUB,
                    status=SubmissionStatus.PENDING,
                    score=0,
                    github_url="https://github.com/racer/lap",
                ).id
            )
        s.commit()

    outcomes = _race(
        _in_session(factory, lambda s: subs.review(s, pending[0], admin_a, APPROVED, score=7)),
        _in_session(factory, lambda s: subs.review(s, pending[1], admin_b, APPROVED, score=9)),
    )

    assert all(isinstance(o, Submission) for o in outcomes)
    with factory() as s:
        enrollment = s.get(Enrollment, enrollment_id)
        assert enrollment.final_score == 16
        assert enrollment.current_unlocked_task == 3
        assert enrollment.is_completed is False


def test_racing_payment_verification_issues_one_certificate(shared):
    factory = shared["factory"]
    subs = shared["submissions"]
    payments = shared["payments"]
    intern_id, (admin_a, admin_b), task_ids = _seed(factory, tasks=1)

    with factory() as s:
        internship_id = s.get(Task, task_ids[0]).internship_id
        enrollment_id = shared["enrollments"].enroll(s, intern_id, internship_id).id
        sub = subs.submit(s, intern_id, task_ids[0], SubmissionPayload(github_url="https://github.com/racer/x"))
        subs.review(s, sub.id, admin_a, APPROVED)
        payment_id = payments.initiate_certificate_payment(s, enrollment_id, intern_id).id
        payments.upload_proof(s, payment_id, intern_id, "UTR77", b"receipt", "receipt.png")

    outcomes = _race(
        _in_session(factory, lambda s: payments.verify_payment(s, payment_id, admin_a, "UTR77")),
        _in_session(factory, lambda s: payments.verify_payment(s, payment_id, admin_b, "UTR77")),
    )

    assert sum(isinstance(o, ConflictError) for o in outcomes) == 1
    with factory() as s:
        assert s.query(CertificateSession).filter(CertificateSession.enrollment_id == enrollment_id).count() == 1
        assert s.get(Enrollment, enrollment_id).certificate_purchased is True


def test_racing_payment_initiation_keeps_one_pending(shared):
    factory = shared["factory"]
    subs = shared["submissions"]
    payments = shared["payments"]
    intern_id, (admin_a, _), task_ids = _seed(factory, tasks=1)

    with factory() as s:
        internship_id = s.get(Task, task_ids[0]).internship_id
        enrollment_id = shared["enrollments"].enroll(s, intern_id, internship_id).id
        sub = subs.submit(s, intern_id, task_ids[0], SubmissionPayload(github_url="https://github.com/racer/y"))
        subs.review(s, sub.id, admin_a, APPROVED)

    outcomes = _race(
        _in_session(factory, lambda s: payments.initiate_certificate_payment(s, enrollment_id, intern_id)),
        _in_session(factory, lambda s: payments.initiate_certificate_payment(s, enrollment_id, intern_id)),
    )

    assert sum(isinstance(o, ConflictError) for o in outcomes) == 1
