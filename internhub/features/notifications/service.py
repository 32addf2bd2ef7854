import logging
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from internhub.common.errors import NotFoundError, UnauthorizedError
from internhub.db.session import SessionLocal, transaction
from .models import Notification, NotificationKind
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Fire-and-forget intern notifications.

    ``notify`` writes through its own session so it can run after the
    triggering workflow has committed; a failure here is logged and dropped.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None) -> None:
        self._session_factory = session_factory or SessionLocal

    def notify(
        self,
        user_id: UUID,
        title: str,
        message: str,
        kind: NotificationKind = NotificationKind.INFO,
    ) -> bool:
        try:
            with self._session_factory() as db, transaction(db):
                NotificationRepository.create_notification(db, user_id, title, message, kind)
            logger.info("notification.sent user_id=%s title=%r", user_id, title)
            return True
        except Exception as e:
            logger.error("notification.failed user_id=%s title=%r error=%s", user_id, title, e)
            return False

    @staticmethod
    def list_for_user(db: Session, user_id: UUID, limit: int = 50) -> List[Notification]:
        return NotificationRepository.list_for_user(db, user_id, limit=limit)

    @staticmethod
    def count_unread(db: Session, user_id: UUID) -> int:
        return NotificationRepository.count_unread(db, user_id)

    @staticmethod
    def mark_read(db: Session, notification_id: UUID, user_id: UUID) -> Notification:
        with transaction(db):
            row = NotificationRepository.get(db, notification_id)
            if row is None:
                raise NotFoundError.for_entity("Notification", notification_id)
            if row.user_id != user_id:
                raise UnauthorizedError("Notification belongs to another user")
            row.is_read = True
        return row


notification_service = NotificationService()
