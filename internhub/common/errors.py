"""Domain error taxonomy shared by every workflow service.

Services raise these; the FastAPI layer renders them as ``ErrorResponse``
bodies with the attached HTTP status. Workflow errors are never retried
internally.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DomainError(Exception):
    status_code: int = 400
    error_code: str = "domain_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(DomainError):
    status_code = 404
    error_code = "not_found"

    @classmethod
    def for_entity(cls, entity: str, entity_id: Any) -> "NotFoundError":
        return cls(f"{entity} not found", {"entity": entity, "id": str(entity_id)})


class NotEnrolledError(DomainError):
    error_code = "not_enrolled"


class TaskLockedError(DomainError):
    error_code = "task_locked"


class AttemptLimitExceededError(DomainError):
    error_code = "attempt_limit_exceeded"


class AlreadyEnrolledError(DomainError):
    status_code = 409
    error_code = "already_enrolled"


class ValidationError(DomainError):
    error_code = "validation_error"


class UnauthorizedError(DomainError):
    """Ownership or role mismatch for an authenticated caller."""

    status_code = 403
    error_code = "unauthorized"


class ConflictError(DomainError):
    status_code = 409
    error_code = "conflict"


class AuthenticationError(DomainError):
    status_code = 401
    error_code = "authentication_failed"


__all__ = [
    "DomainError",
    "NotFoundError",
    "NotEnrolledError",
    "TaskLockedError",
    "AttemptLimitExceededError",
    "AlreadyEnrolledError",
    "ValidationError",
    "UnauthorizedError",
    "ConflictError",
    "AuthenticationError",
]
