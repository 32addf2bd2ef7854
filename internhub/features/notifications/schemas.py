from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .models import NotificationKind


class NotificationOut(BaseModel):
    id: UUID
    user_id: UUID
    title: str
    message: str
    kind: NotificationKind
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
