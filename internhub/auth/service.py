"""Bearer-token authentication.

Tokens are HS256 JWTs whose ``sub`` claim carries the user id. Session
issuance lives outside this service; ``issue_access_token`` exists for
seeding scripts and tests.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from internhub.common import timekeeper
from internhub.common.errors import AuthenticationError
from internhub.core.config import get_settings
from internhub.features.users.models import UserRole
from internhub.features.users.repository import user_repository

logger = logging.getLogger("auth.service")

ACCESS_TTL = 60 * 60  # 1 hour


@dataclass(frozen=True)
class Identity:
    id: uuid.UUID
    email: str
    name: str
    role: str
    is_active: bool

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


def _secret() -> str:
    secret = get_settings().jwt_secret
    if not secret:
        raise AuthenticationError("Authentication is not configured")
    return secret


def issue_access_token(user_id: uuid.UUID, ttl_seconds: int = ACCESS_TTL, extra: Optional[Dict[str, Any]] = None) -> str:
    issued = timekeeper.now()
    claims: Dict[str, Any] = {
        "sub": str(user_id),
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(seconds=ttl_seconds)).timestamp()),
    }
    if extra:
        claims.update(extra)
    return jwt.encode(claims, _secret(), algorithm=get_settings().jwt_algorithm)


def decode_token(token: str) -> Dict[str, Any]:
    settings = get_settings()
    try:
        return jwt.decode(token, _secret(), algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthenticationError("Invalid authentication credentials") from exc


def authenticate(db: Session, bearer_token: Optional[str]) -> Identity:
    """Resolve a bearer token to an active user. Fails closed."""
    if not bearer_token:
        raise AuthenticationError("Missing token")

    claims = decode_token(bearer_token)
    subject = claims.get("sub")
    try:
        user_id = uuid.UUID(str(subject))
    except (TypeError, ValueError) as exc:
        raise AuthenticationError("Invalid token: missing subject") from exc

    user = user_repository.get_by_id(db, user_id)
    if user is None or not user.is_active:
        logger.info("auth.rejected user_id=%s reason=%s", user_id, "missing" if user is None else "inactive")
        raise AuthenticationError("User not found or inactive")

    role = user.role.value if isinstance(user.role, UserRole) else str(user.role)
    return Identity(id=user.id, email=user.email, name=user.name, role=role, is_active=user.is_active)
