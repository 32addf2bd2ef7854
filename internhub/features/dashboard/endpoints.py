from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from internhub.common.deps import CurrentUser, get_current_user, require_admin
from internhub.db.session import get_db
from .schemas import AdminStats, InternStats
from .service import admin_stats, intern_stats

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])
admin_router = APIRouter(prefix="/admin/dashboard", tags=["Admin"], dependencies=[Depends(require_admin())])


@router.get("/stats", response_model=InternStats)
def my_stats(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return intern_stats(db, user.id)


@admin_router.get("/stats", response_model=AdminStats)
def platform_stats(db: Session = Depends(get_db)):
    return admin_stats(db)
