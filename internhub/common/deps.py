"""Shared FastAPI dependencies for authentication, authorization, and context."""

from __future__ import annotations

import logging
import uuid
from functools import lru_cache
from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session

from internhub.auth.service import authenticate
from internhub.common.errors import AuthenticationError
from internhub.db.session import get_db


logger = logging.getLogger("auth.deps")
security = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Minimal user identity shared across endpoints."""
    id: uuid.UUID
    email: str
    name: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role.upper() in _admin_roles()


@lru_cache()
def _admin_roles() -> set[str]:
    return {"ADMIN"}


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Resolve and return the current authenticated user.

    Steps:
      1. Validate the bearer token
      2. Load the matching active user row
      3. Return typed minimal identity object
    """
    token = credentials.credentials if credentials else None
    try:
        identity = authenticate(db, token)
    except AuthenticationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.message) from exc

    current = CurrentUser(id=identity.id, email=identity.email, name=identity.name, role=identity.role)
    request.state.current_user = current
    logger.info(
        "auth_resolved user_id=%s role=%s request_id=%s path=%s",
        current.id,
        current.role,
        getattr(request.state, "request_id", None),
        request.url.path,
    )
    return current


def require_role(*roles: str, allow_admin: bool = True) -> Callable:
    """Factory returning dependency enforcing that user has one of the roles.

    Admins pass every role check unless ``allow_admin`` is False. Empty
    ``roles`` means any authenticated user.
    """
    normalized = {r.upper() for r in roles if r}

    def _checker(current: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not normalized:
            return current
        role_u = current.role.upper()
        if role_u in normalized or (allow_admin and role_u in _admin_roles()):
            return current
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")

    return _checker


def require_admin() -> Callable:
    return require_role("ADMIN")


def require_intern() -> Callable:
    """Interns only; admins are refused."""
    return require_role("INTERN", allow_admin=False)
