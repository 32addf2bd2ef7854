import os
import sys
import tempfile

# Ensure repo root on sys.path for imports like `internhub...`
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Settings are read once at import; configure before anything imports internhub
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="internhub-uploads-")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402

from internhub.auth.service import issue_access_token  # noqa: E402
from internhub.common import timekeeper  # noqa: E402
from internhub.db import models  # noqa: E402,F401
from internhub.db.base import Base  # noqa: E402
from internhub.db.session import SessionLocal, engine  # noqa: E402
from internhub.features.catalog.models import Internship, SubmissionType, Task  # noqa: E402
from internhub.features.submissions.schemas import SubmissionPayload  # noqa: E402
from internhub.features.users.models import User, UserRole  # noqa: E402


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        timekeeper.reset()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role: UserRole = UserRole.INTERN, name: str = None, is_active: bool = True) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=f"{role.value.lower()}{n}@example.com",
            name=name or f"{role.value.title()} {n}",
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def intern(make_user):
    return make_user(UserRole.INTERN)


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN)


@pytest.fixture
def make_internship(db):
    def _make(
        tasks: int = 3,
        points=10,
        pass_percentage: int = 75,
        certificate_price: int = 499,
        submission_type: SubmissionType = SubmissionType.GITHUB,
        max_attempts: int = 3,
        title: str = "Backend Engineering",
    ) -> Internship:
        internship = Internship(
            title=title,
            description="Build services",
            duration_days=35,
            certificate_price=certificate_price,
            pass_percentage=pass_percentage,
        )
        db.add(internship)
        db.flush()
        point_list = points if isinstance(points, (list, tuple)) else [points] * tasks
        for number, pts in enumerate(point_list, start=1):
            db.add(
                Task(
                    internship_id=internship.id,
                    task_number=number,
                    title=f"Task {number}",
                    description=f"Do step {number}",
                    points=pts,
                    submission_type=submission_type,
                    wait_time_hours=12,
                    max_attempts=max_attempts,
                )
            )
        db.commit()
        return internship

    return _make


@pytest.fixture
def github_payload():
    return SubmissionPayload(github_url="https://github.com/intern/project")


@pytest.fixture
def auth_header():
    def _header(user: User) -> dict:
        return {"Authorization": f"Bearer {issue_access_token(user.id)}"}

    return _header


@pytest.fixture
def task_of(db):
    def _task(internship: Internship, number: int) -> Task:
        return (
            db.query(Task)
            .filter(Task.internship_id == internship.id, Task.task_number == number)
            .one()
        )

    return _task
