"""initial internship workflow schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


_ENUMS = {
    "user_role": ("ADMIN", "INTERN"),
    "submission_type": ("GITHUB", "FORM", "FILE"),
    "enrollment_status": ("ACTIVE", "COMPLETED", "UNENROLLED"),
    "submission_status": ("PENDING", "APPROVED", "REJECTED"),
    "payment_type": ("CERTIFICATE", "PAID_TASK"),
    "payment_status": ("PENDING", "VERIFIED", "REJECTED"),
    "certificate_status": ("ISSUED", "UPLOADED"),
    "validation_status": ("PENDING", "VALID", "INVALID"),
    "notification_kind": ("INFO", "SUCCESS", "WARNING", "ERROR"),
}


def _enum(name: str) -> postgresql.ENUM:
    # Types are created once up front; columns only reference them
    return postgresql.ENUM(*_ENUMS[name], name=name, create_type=False)


def _ts(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in _ENUMS.items():
        sa.Enum(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("role", _enum("user_role"), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _ts("created_at", nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "internships",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("duration_days", sa.Integer(), nullable=False),
        sa.Column("certificate_price", sa.Integer(), nullable=False),
        sa.Column("pass_percentage", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
        sa.CheckConstraint("pass_percentage BETWEEN 0 AND 100", name="ck_internship_pass_percentage"),
        sa.CheckConstraint("certificate_price >= 0", name="ck_internship_certificate_price"),
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("internship_id", sa.Uuid(), sa.ForeignKey("internships.id"), nullable=False),
        sa.Column("task_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("submission_type", _enum("submission_type"), nullable=False),
        sa.Column("wait_time_hours", sa.Integer(), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        _ts("created_at", nullable=False),
        sa.UniqueConstraint("internship_id", "task_number", name="uq_task_internship_number"),
        sa.CheckConstraint("points > 0", name="ck_task_points_positive"),
        sa.CheckConstraint("task_number >= 1", name="ck_task_number_positive"),
        sa.CheckConstraint("max_attempts >= 1", name="ck_task_max_attempts"),
    )
    op.create_index("ix_tasks_internship_id", "tasks", ["internship_id"])

    op.create_table(
        "enrollments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("internship_id", sa.Uuid(), sa.ForeignKey("internships.id"), nullable=False),
        sa.Column("current_unlocked_task", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("status", _enum("enrollment_status"), nullable=False),
        sa.Column("final_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("certificate_purchased", sa.Boolean(), nullable=False),
        _ts("enrollment_date", nullable=False),
        _ts("completion_date"),
        _ts("unenrollment_date"),
        sa.UniqueConstraint("user_id", "internship_id", name="uq_enrollment_user_internship"),
        sa.CheckConstraint("current_unlocked_task >= 1", name="ck_enrollment_cursor_positive"),
        sa.CheckConstraint("final_score >= 0", name="ck_enrollment_final_score"),
    )
    op.create_index("ix_enrollments_user_id", "enrollments", ["user_id"])
    op.create_index("ix_enrollments_internship_id", "enrollments", ["internship_id"])

    op.create_table(
        "submissions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("enrollment_id", sa.Uuid(), sa.ForeignKey("enrollments.id"), nullable=False),
        sa.Column("task_id", sa.Uuid(), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("attempt_number", sa.Integer(), nullable=False),
        sa.Column("submission_type", _enum("submission_type"), nullable=False),
        sa.Column("github_url", sa.String(length=500), nullable=True),
        sa.Column("form_data", sa.JSON(), nullable=True),
        sa.Column("file_url", sa.String(length=500), nullable=True),
        sa.Column("status", _enum("submission_status"), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("admin_feedback", sa.Text(), nullable=True),
        _ts("submitted_at", nullable=False),
        _ts("reviewed_at"),
        sa.Column("reviewed_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("next_task_unlocked", sa.Boolean(), nullable=False),
        sa.CheckConstraint("score >= 0", name="ck_submission_score"),
    )
    op.create_index("ix_submissions_enrollment_id", "submissions", ["enrollment_id"])
    op.create_index("ix_submissions_task_id", "submissions", ["task_id"])
    op.create_index("ix_submissions_user_id", "submissions", ["user_id"])
    op.create_index("ix_submissions_status", "submissions", ["status"])

    op.create_table(
        "task_unlocks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("enrollment_id", sa.Uuid(), sa.ForeignKey("enrollments.id"), nullable=False),
        sa.Column("task_id", sa.Uuid(), sa.ForeignKey("tasks.id"), nullable=False),
        _ts("unlocks_at", nullable=False),
        sa.Column("is_unlocked", sa.Boolean(), nullable=False),
        _ts("created_at", nullable=False),
        sa.UniqueConstraint("enrollment_id", "task_id", name="uq_task_unlock_enrollment_task"),
    )
    op.create_index("ix_task_unlocks_enrollment_id", "task_unlocks", ["enrollment_id"])

    op.create_table(
        "resubmission_opportunities",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("enrollment_id", sa.Uuid(), sa.ForeignKey("enrollments.id"), nullable=False),
        sa.Column("task_id", sa.Uuid(), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("submission_id", sa.Uuid(), sa.ForeignKey("submissions.id"), nullable=False, unique=True),
        _ts("allowed_until", nullable=False),
        _ts("used_at"),
        _ts("created_at", nullable=False),
    )
    op.create_index("ix_resubmission_opportunities_enrollment_id", "resubmission_opportunities", ["enrollment_id"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("internship_id", sa.Uuid(), sa.ForeignKey("internships.id"), nullable=True),
        sa.Column("enrollment_id", sa.Uuid(), sa.ForeignKey("enrollments.id"), nullable=True),
        sa.Column("paid_task_id", sa.Uuid(), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("payment_type", _enum("payment_type"), nullable=False),
        sa.Column("payment_status", _enum("payment_status"), nullable=False),
        sa.Column("transaction_id", sa.String(length=255), nullable=True),
        sa.Column("payment_proof_url", sa.String(length=500), nullable=True),
        _ts("proof_submitted_at"),
        sa.Column("verified_transaction_id", sa.String(length=255), nullable=True),
        _ts("verified_at"),
        sa.Column("verified_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        _ts("rejected_at"),
        _ts("created_at", nullable=False),
        sa.CheckConstraint("amount >= 0", name="ck_payment_amount"),
    )
    op.create_index("ix_payments_user_id", "payments", ["user_id"])
    op.create_index("ix_payments_internship_id", "payments", ["internship_id"])
    op.create_index("ix_payments_enrollment_id", "payments", ["enrollment_id"])
    op.create_index("ix_payments_payment_status", "payments", ["payment_status"])

    op.create_table(
        "certificate_sessions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("enrollment_id", sa.Uuid(), sa.ForeignKey("enrollments.id"), nullable=False, unique=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("payment_id", sa.Uuid(), sa.ForeignKey("payments.id"), nullable=False, unique=True),
        sa.Column("certificate_number", sa.String(length=64), nullable=False),
        sa.Column("status", _enum("certificate_status"), nullable=False),
        _ts("issued_at", nullable=False),
        sa.Column("certificate_url", sa.String(length=500), nullable=True),
        _ts("uploaded_at"),
        sa.Column("uploaded_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("download_count", sa.Integer(), nullable=False, server_default="0"),
        _ts("last_downloaded_at"),
    )
    op.create_index("ix_certificate_sessions_user_id", "certificate_sessions", ["user_id"])
    op.create_index(
        "ix_certificate_sessions_certificate_number", "certificate_sessions", ["certificate_number"], unique=True
    )

    op.create_table(
        "certificate_validations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("certificate_session_id", sa.Uuid(), sa.ForeignKey("certificate_sessions.id"), nullable=False),
        sa.Column("certificate_number", sa.String(length=64), nullable=False),
        sa.Column("certificate_url", sa.String(length=500), nullable=False),
        sa.Column("status", _enum("validation_status"), nullable=False),
        sa.Column("review_message", sa.Text(), nullable=True),
        _ts("submitted_at", nullable=False),
        _ts("reviewed_at"),
        sa.Column("reviewed_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
    )
    op.create_index("ix_certificate_validations_user_id", "certificate_validations", ["user_id"])
    op.create_index("ix_certificate_validations_certificate_session_id", "certificate_validations", ["certificate_session_id"])
    op.create_index("ix_certificate_validations_status", "certificate_validations", ["status"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("kind", _enum("notification_kind"), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        _ts("created_at", nullable=False),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=True),
        sa.Column("details", sa.Text(), nullable=False),
        _ts("created_at", nullable=False),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])


def downgrade() -> None:
    for table in (
        "audit_logs",
        "notifications",
        "certificate_validations",
        "certificate_sessions",
        "payments",
        "resubmission_opportunities",
        "task_unlocks",
        "submissions",
        "enrollments",
        "tasks",
        "internships",
        "users",
    ):
        op.drop_table(table)
    bind = op.get_bind()
    for name in reversed(list(_ENUMS)):
        sa.Enum(name=name).drop(bind, checkfirst=True)
