import logging
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from internhub.db.session import SessionLocal, transaction
from .models import AuditLog

logger = logging.getLogger(__name__)


class AuditService:
    """Best-effort audit trail; never aborts the action being audited."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None) -> None:
        self._session_factory = session_factory or SessionLocal

    def record(self, action: str, actor_id: Optional[UUID], details: str = "") -> bool:
        try:
            with self._session_factory() as db, transaction(db):
                db.add(AuditLog(action=action, actor_id=actor_id, details=details))
            return True
        except Exception as e:
            logger.error("audit.failed action=%s actor_id=%s error=%s", action, actor_id, e)
            return False


audit_service = AuditService()
