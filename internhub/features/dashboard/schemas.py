from pydantic import BaseModel


class AdminStats(BaseModel):
    total_interns: int
    active_interns: int
    total_enrollments: int
    completed_enrollments: int
    total_submissions: int
    pending_submissions: int
    total_payments: int
    pending_payments: int
    certificates_issued: int


class InternStats(BaseModel):
    total_enrollments: int
    active_enrollments: int
    completed_enrollments: int
    completed_tasks: int
    total_points: int
    unread_notifications: int
