import enum
import uuid

from sqlalchemy import Boolean, Column, Enum, ForeignKey, String, Text, Uuid

from internhub.common import timekeeper
from internhub.db.base import Base, UTCDateTime


class NotificationKind(str, enum.Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    kind = Column(Enum(NotificationKind, name="notification_kind"), nullable=False, default=NotificationKind.INFO)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, nullable=False, default=timekeeper.now)

    def __repr__(self):
        return f"<Notification(id={self.id}, user_id={self.user_id}, title={self.title!r})>"
