import uuid

from sqlalchemy import Column, String, Text, Uuid

from internhub.common import timekeeper
from internhub.db.base import Base, UTCDateTime


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    action = Column(String(100), nullable=False, index=True)
    actor_id = Column(Uuid, nullable=True, index=True)
    details = Column(Text, nullable=False, default="")
    created_at = Column(UTCDateTime, nullable=False, default=timekeeper.now)

    def __repr__(self):
        return f"<AuditLog(action={self.action}, actor_id={self.actor_id})>"
