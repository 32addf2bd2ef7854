"""Admin user management: listing and access revocation."""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from internhub.common.errors import NotFoundError, ValidationError
from internhub.common.utils import paginate_query
from internhub.db.session import transaction
from internhub.features.audit.service import AuditService, audit_service
from internhub.features.notifications.models import NotificationKind
from internhub.features.notifications.service import NotificationService, notification_service
from .models import User, UserRole
from .repository import UserRepository

logger = logging.getLogger("users.service")


class UserService:

    def __init__(
        self,
        notifier: Optional[NotificationService] = None,
        auditor: Optional[AuditService] = None,
    ) -> None:
        self.notifier = notifier or notification_service
        self.auditor = auditor or audit_service

    @staticmethod
    def list_users(
        db: Session,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Dict[str, Any]:
        return paginate_query(UserRepository.list_query(db, role, is_active), page, per_page)

    def set_access(self, db: Session, user_id: UUID, actor_id: UUID, is_active: bool) -> User:
        """Revoke or restore a user's access. Revoked users fail authentication."""
        if user_id == actor_id:
            raise ValidationError("You cannot change your own access")
        with transaction(db):
            user = UserRepository.get_by_id(db, user_id, for_update=True)
            if user is None:
                raise NotFoundError.for_entity("User", user_id)
            changed = user.is_active != is_active
            user.is_active = is_active
            email = user.email

        action = "ACCESS_RESTORED" if is_active else "ACCESS_REVOKED"
        logger.info("user.access user_id=%s is_active=%s changed=%s actor_id=%s", user_id, is_active, changed, actor_id)
        if not changed:
            return user
        if is_active:
            self.notifier.notify(
                user_id,
                "Account Access Restored",
                "Your account access has been restored.",
                NotificationKind.SUCCESS,
            )
        else:
            self.notifier.notify(
                user_id,
                "Account Access Revoked",
                "Your account access has been suspended. Please contact the administrator.",
                NotificationKind.WARNING,
            )
        verb = "Restored" if is_active else "Revoked"
        self.auditor.record(action, actor_id, f"{verb} access for {email}")
        return user


user_service = UserService()
