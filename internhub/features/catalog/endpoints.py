from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from internhub.common.deps import CurrentUser, get_current_user, require_admin
from internhub.db.session import get_db
from .schemas import (
    InternshipCreate,
    InternshipDeleted,
    InternshipDetail,
    InternshipPatch,
    InternshipResponse,
    TaskCreate,
    TaskPatch,
    TaskResponse,
)
from .service import catalog_service

router = APIRouter(prefix="/internships", tags=["Internships"])
admin_router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin())])


@router.get("/", response_model=List[InternshipResponse])
def list_internships(
    include_inactive: bool = Query(False),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return catalog_service.list_internships(db, include_inactive=include_inactive and user.is_admin)


@router.get("/{internship_id}", response_model=InternshipDetail)
def get_internship(
    internship_id: UUID,
    _: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return catalog_service.get_internship_detail(db, internship_id)


@router.get("/{internship_id}/tasks", response_model=List[TaskResponse])
def list_tasks(
    internship_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return catalog_service.list_tasks(db, internship_id, active_only=not user.is_admin)


@admin_router.post("/internships", response_model=InternshipResponse, status_code=status.HTTP_201_CREATED)
def create_internship(
    payload: InternshipCreate,
    admin: CurrentUser = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    return catalog_service.create_internship(db, payload, admin.id)


@admin_router.patch("/internships/{internship_id}", response_model=InternshipResponse)
def update_internship(
    internship_id: UUID,
    patch: InternshipPatch,
    admin: CurrentUser = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    return catalog_service.update_internship(db, internship_id, patch, admin.id)


@admin_router.delete("/internships/{internship_id}", response_model=InternshipDeleted)
def delete_internship(
    internship_id: UUID,
    admin: CurrentUser = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    return catalog_service.delete_internship(db, internship_id, admin.id)


@admin_router.post("/internships/{internship_id}/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    internship_id: UUID,
    payload: TaskCreate,
    admin: CurrentUser = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    return catalog_service.create_task(db, internship_id, payload, admin.id)


@admin_router.patch("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: UUID,
    patch: TaskPatch,
    admin: CurrentUser = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    return catalog_service.update_task(db, task_id, patch, admin.id)


@admin_router.delete("/tasks/{task_id}", response_model=TaskResponse)
def delete_task(
    task_id: UUID,
    admin: CurrentUser = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    return catalog_service.delete_task(db, task_id, admin.id)
