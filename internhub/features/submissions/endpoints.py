# internhub/features/submissions/endpoints.py
from __future__ import annotations

import json
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from internhub.common.deps import CurrentUser, get_current_user, require_admin, require_intern
from internhub.db.session import get_db
from .models import SubmissionStatus
from .schemas import ReviewRequest, SubmissionPage, SubmissionPayload, SubmissionResponse
from .service import submission_service

logger = logging.getLogger("submissions")

router = APIRouter(prefix="/submissions", tags=["Submissions"])
admin_router = APIRouter(
    prefix="/admin/submissions", tags=["Admin"], dependencies=[Depends(require_admin())]
)


@router.post(
    "/tasks/{task_id}",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit an attempt for a task",
)
def submit_task(
    task_id: UUID,
    github_url: Optional[str] = Form(None),
    form_data: Optional[str] = Form(None, description="JSON object with the form answers"),
    file: Optional[UploadFile] = File(None),
    user: CurrentUser = Depends(require_intern()),
    db: Session = Depends(get_db),
):
    parsed_form = None
    if form_data:
        try:
            parsed_form = json.loads(form_data)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="form_data must be valid JSON") from exc
        if not isinstance(parsed_form, dict):
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="form_data must be a JSON object")

    payload = SubmissionPayload(
        github_url=github_url,
        form_data=parsed_form,
        file_bytes=file.file.read() if file is not None else None,
        filename=file.filename if file is not None else None,
    )
    return submission_service.submit(db, user.id, task_id, payload)


@router.get("/me", response_model=List[SubmissionResponse])
def list_my_submissions(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return submission_service.list_for_user(db, user.id)


@router.get("/{submission_id}/file", response_class=FileResponse)
def get_submission_file(
    submission_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return FileResponse(submission_service.file_for(db, submission_id, user.id, is_admin=user.is_admin))


@admin_router.get("/", response_model=SubmissionPage)
def list_submissions(
    status_filter: Optional[SubmissionStatus] = Query(None, alias="status"),
    internship_id: Optional[UUID] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return submission_service.admin_list(db, status_filter, internship_id, page, per_page)


@admin_router.post("/{submission_id}/review", response_model=SubmissionResponse)
def review_submission(
    submission_id: UUID,
    payload: ReviewRequest,
    admin: CurrentUser = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    return submission_service.review(
        db,
        submission_id,
        admin.id,
        payload.decision,
        score=payload.score,
        feedback=payload.feedback,
    )
