from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from internhub.common.deps import CurrentUser, require_admin
from internhub.db.session import get_db
from .models import UserRole
from .schemas import UserPage, UserResponse
from .service import user_service

admin_router = APIRouter(prefix="/admin/users", tags=["Admin"], dependencies=[Depends(require_admin())])


@admin_router.get("/", response_model=UserPage)
def list_users(
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return user_service.list_users(db, role, is_active, page, per_page)


@admin_router.post("/{user_id}/revoke", response_model=UserResponse)
def revoke_access(
    user_id: UUID,
    admin: CurrentUser = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    return user_service.set_access(db, user_id, admin.id, is_active=False)


@admin_router.post("/{user_id}/restore", response_model=UserResponse)
def restore_access(
    user_id: UUID,
    admin: CurrentUser = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    return user_service.set_access(db, user_id, admin.id, is_active=True)
