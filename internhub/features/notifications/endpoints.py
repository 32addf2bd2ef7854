from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from internhub.common.deps import CurrentUser, get_current_user
from internhub.common.schemas import UnreadCount
from internhub.db.session import get_db
from .schemas import NotificationOut
from .service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/", response_model=List[NotificationOut])
def list_my_notifications(
    limit: int = Query(50, ge=1, le=200),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return NotificationService.list_for_user(db, user.id, limit=limit)


@router.get("/unread-count", response_model=UnreadCount)
def count_unread_notifications(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return UnreadCount(unread=NotificationService.count_unread(db, user.id))


@router.patch("/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(
    notification_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return NotificationService.mark_read(db, notification_id, user.id)
