from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from app.core.deps import require_capability
from app.core.errors import NotFound, ValidationError
from app.core.settings import settings
from app.db.session import get_db
from app.models.assignment import Assignment, AssignmentHistory
from app.models.enums import AssignmentStatus
from app.models.user import User
from app.schemas.assignment import AssignmentDetail, AssignmentRead, Pagination, SubmitRequest
from app.schemas.base import envelope
from app.schemas.user import UserBrief
from app.services import storage, workflow
from app.services.dashboard import student_dashboard
from app.services.routing import list_department_professors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/student", tags=["student"])

uploader = require_capability("upload_assignment")
submitter = require_capability("submit_assignment")


def _get_visible_assignment(db: Session, assignment_id: int, user: User) -> Assignment:
    """Owner or current reviewer may view an assignment."""
    assignment = (
        db.query(Assignment)
        .options(
            selectinload(Assignment.student),
            selectinload(Assignment.reviewer),
            selectinload(Assignment.history).selectinload(AssignmentHistory.reviewer),
        )
        .filter(
            Assignment.id == assignment_id,
            or_(Assignment.student_id == user.id, Assignment.reviewer_id == user.id),
        )
        .first()
    )
    if not assignment:
        raise NotFound("Assignment not found")
    return assignment


@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db), current_user: User = Depends(uploader)) -> dict:
    return envelope("Dashboard data retrieved successfully", student_dashboard(db, current_user))


@router.get("/assignments")
def list_assignments(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(uploader),
) -> dict:
    query = db.query(Assignment).options(selectinload(Assignment.reviewer)).filter(
        Assignment.student_id == current_user.id
    )
    if status_filter:
        try:
            query = query.filter(Assignment.status == AssignmentStatus(status_filter.strip().upper()))
        except ValueError:
            # Unknown status filters are ignored and the full list returned.
            pass

    total = query.count()
    assignments = (
        query.order_by(Assignment.created_at.desc(), Assignment.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    pagination = Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit),
        has_next_page=page * limit < total,
        has_previous_page=page > 1,
    )
    return envelope(
        "Assignments retrieved successfully",
        {
            "assignments": [AssignmentRead.model_validate(item) for item in assignments],
            "pagination": pagination,
        },
    )


@router.get("/assignments/{assignment_id}")
def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(uploader),
) -> dict:
    assignment = _get_visible_assignment(db, assignment_id, current_user)
    return envelope(
        "Assignment retrieved successfully",
        {"assignment": AssignmentDetail.model_validate(assignment)},
    )


@router.get("/assignments/{assignment_id}/download")
def download_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(uploader),
):
    assignment = _get_visible_assignment(db, assignment_id, current_user)
    if not assignment.file_path:
        raise NotFound("Assignment file not found")
    path = storage.resolve_file(assignment.file_path)
    if path is None:
        raise NotFound("Assignment file not found on server")
    return FileResponse(
        path=path,
        filename=storage.download_name(assignment.title),
        media_type="application/pdf",
    )


@router.get("/professors")
def professors(db: Session = Depends(get_db), current_user: User = Depends(uploader)) -> dict:
    items = list_department_professors(db, current_user)
    return envelope(
        "Professors retrieved successfully",
        {"professors": [UserBrief.model_validate(item) for item in items]},
    )


@router.post("/assignments/upload", status_code=status.HTTP_201_CREATED)
def upload_assignment(
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    category: Optional[str] = Form(default=None),
    file: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(uploader),
) -> dict:
    clean_title = workflow.normalize_title(title)
    workflow.normalize_category(category)
    storage.validate_pdf_upload(file)

    file_path = storage.save_assignment_file(file, current_user.id)
    try:
        assignment = workflow.create_assignment(
            db,
            student=current_user,
            title=clean_title,
            description=description,
            category=category,
            file_path=file_path,
        )
        db.commit()
    except Exception:
        db.rollback()
        storage.remove_file(file_path)
        raise
    db.refresh(assignment)
    return envelope(
        f"Assignment uploaded successfully with ID: {assignment.id}",
        {"assignment": AssignmentRead.model_validate(assignment)},
    )


@router.post("/assignments/bulk-upload", status_code=status.HTTP_201_CREATED)
def bulk_upload(
    files: List[UploadFile] = File(default=[]),
    description: Optional[str] = Form(default=None),
    category: Optional[str] = Form(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(uploader),
) -> dict:
    if not files:
        raise ValidationError("At least one file is required. Please upload PDF files.")
    if len(files) > settings.bulk_upload_max_files:
        raise ValidationError(f"Maximum {settings.bulk_upload_max_files} files allowed")
    for upload in files:
        storage.validate_pdf_upload(upload)
    workflow.normalize_category(category)

    stored: list[str] = []
    try:
        created = []
        for upload in files:
            file_path = storage.save_assignment_file(upload, current_user.id)
            stored.append(file_path)
            created.append(
                workflow.create_assignment(
                    db,
                    student=current_user,
                    title=Path(upload.filename).stem,
                    description=description,
                    category=category,
                    file_path=file_path,
                )
            )
        db.commit()
    except Exception:
        db.rollback()
        for file_path in stored:
            storage.remove_file(file_path)
        raise
    return envelope(
        f"Successfully uploaded {len(created)} assignment(s)",
        {"assignments": [AssignmentRead.model_validate(item) for item in created], "count": len(created)},
    )


@router.post("/assignments/{assignment_id}/submit")
def submit_assignment(
    assignment_id: int,
    payload: SubmitRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(submitter),
) -> dict:
    assignment = workflow.submit(db, assignment_id, student=current_user, reviewer_id=payload.reviewer_id)
    db.commit()
    db.refresh(assignment)
    return envelope(
        "Assignment submitted successfully for review",
        {"assignment": AssignmentRead.model_validate(assignment)},
    )


@router.post("/assignments/{assignment_id}/resubmit")
def resubmit_assignment(
    assignment_id: int,
    description: Optional[str] = Form(default=None),
    file: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(submitter),
) -> dict:
    workflow.get_owned_assignment(db, assignment_id, current_user)
    new_path: Optional[str] = None
    if file is not None and file.filename:
        new_path = storage.save_assignment_file(file, current_user.id)
    try:
        result = workflow.resubmit(
            db,
            assignment_id,
            student=current_user,
            description=description,
            file_path=new_path,
        )
        db.commit()
    except Exception:
        db.rollback()
        storage.remove_file(new_path)
        raise
    storage.remove_file(result.replaced_file_path)
    db.refresh(result.assignment)
    return envelope(
        "Assignment resubmitted successfully",
        {"assignment": AssignmentRead.model_validate(result.assignment)},
    )
