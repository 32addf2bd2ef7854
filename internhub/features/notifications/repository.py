# internhub/features/notifications/repository.py
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from .models import Notification, NotificationKind


class NotificationRepository:

    @staticmethod
    def create_notification(
        db: Session,
        user_id: UUID,
        title: str,
        message: str,
        kind: NotificationKind = NotificationKind.INFO,
    ) -> Notification:
        row = Notification(user_id=user_id, title=title, message=message, kind=kind)
        db.add(row)
        db.flush()
        return row

    @staticmethod
    def list_for_user(db: Session, user_id: UUID, limit: int = 50) -> List[Notification]:
        return (
            db.query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get(db: Session, notification_id: UUID) -> Optional[Notification]:
        return db.get(Notification, notification_id)

    @staticmethod
    def count_unread(db: Session, user_id: UUID) -> int:
        return (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .count()
        )
