# Import all models here so Alembic and create_all can discover them
from internhub.db.base import Base

# Users first (referenced by other models)
from internhub.features.users.models import User
from internhub.features.catalog.models import Internship, Task
from internhub.features.enrollments.models import Enrollment
from internhub.features.submissions.models import Submission, TaskUnlock, ResubmissionOpportunity
from internhub.features.payments.models import Payment
from internhub.features.certificates.models import CertificateSession, CertificateValidation
from internhub.features.notifications.models import Notification
from internhub.features.audit.models import AuditLog

__all__ = [
    "Base",
    "User",
    "Internship",
    "Task",
    "Enrollment",
    "Submission",
    "TaskUnlock",
    "ResubmissionOpportunity",
    "Payment",
    "CertificateSession",
    "CertificateValidation",
    "Notification",
    "AuditLog",
]
