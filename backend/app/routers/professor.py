from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, selectinload

from app.core.deps import require_capability
from app.core.errors import NotFound
from app.core.otp_store import OtpStore, get_otp_store
from app.db.session import get_db
from app.models.assignment import Assignment, AssignmentHistory
from app.models.user import User
from app.schemas.assignment import (
    ApprovalCodeRequest,
    ApprovalVerifyRequest,
    AssignmentDetail,
    AssignmentRead,
    ForwardRequest,
    RejectRequest,
)
from app.schemas.base import envelope
from app.schemas.notification import NotificationRead
from app.schemas.user import UserBrief
from app.services import notifications as notification_service
from app.services import review_gate, workflow
from app.services.dashboard import professor_dashboard
from app.services.email import send_rejection_email
from app.services.routing import list_forward_recipients

logger = logging.getLogger("workflow")

router = APIRouter(prefix="/professor", tags=["professor"])

reviewer_dep = require_capability("review_assignment")
approver_dep = require_capability("approve_assignment")
rejecter_dep = require_capability("reject_assignment")
forwarder_dep = require_capability("forward_assignment")


@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db), current_user: User = Depends(reviewer_dep)) -> dict:
    return envelope("Professor dashboard retrieved successfully", professor_dashboard(db, current_user))


@router.get("/notifications")
def notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(reviewer_dep),
) -> dict:
    items = notification_service.list_notifications(db, current_user, unread_only=unread_only, limit=limit)
    return envelope(
        "Notifications retrieved successfully",
        {
            "notifications": [NotificationRead.model_validate(item) for item in items],
            "unreadCount": notification_service.unread_count(db, current_user),
        },
    )


@router.patch("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(reviewer_dep),
) -> dict:
    notification_service.mark_read(db, notification_id, current_user)
    db.commit()
    return envelope("Notification marked as read")


@router.get("/assignments/{assignment_id}/review")
def review_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(reviewer_dep),
) -> dict:
    workflow.get_assignment_under_review(db, assignment_id, current_user)
    assignment = (
        db.query(Assignment)
        .options(
            selectinload(Assignment.student),
            selectinload(Assignment.reviewer),
            selectinload(Assignment.history).selectinload(AssignmentHistory.reviewer),
        )
        .filter(Assignment.id == assignment_id)
        .first()
    )
    if assignment is None:
        raise NotFound(workflow.NOT_PENDING_REVIEW)
    return envelope("Assignment retrieved for review", {"assignment": AssignmentDetail.model_validate(assignment)})


@router.post("/assignments/{assignment_id}/approve/request-otp")
def request_approval_otp(
    assignment_id: int,
    payload: ApprovalCodeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(approver_dep),
    store: OtpStore = Depends(get_otp_store),
) -> dict:
    review_gate.request_approval_otp(
        db,
        assignment_id,
        approver=current_user,
        store=store,
        remarks=payload.remarks,
        signature=payload.signature,
    )
    return envelope("OTP sent to your email. Enter it below to approve.")


@router.post("/assignments/{assignment_id}/approve/verify")
def verify_approval_otp(
    assignment_id: int,
    payload: ApprovalVerifyRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(approver_dep),
    store: OtpStore = Depends(get_otp_store),
) -> dict:
    assignment = review_gate.verify_approval_otp(
        db,
        assignment_id,
        approver=current_user,
        code=payload.otp,
        store=store,
        remarks=payload.remarks,
        signature=payload.signature,
    )
    db.commit()
    db.refresh(assignment)
    return envelope(
        "Assignment approved successfully. The student has been notified.",
        {"assignment": AssignmentRead.model_validate(assignment)},
    )


@router.post("/assignments/{assignment_id}/reject")
def reject_assignment(
    assignment_id: int,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(rejecter_dep),
) -> dict:
    assignment = workflow.reject(db, assignment_id, reviewer=current_user, remark=payload.remark)
    db.commit()
    db.refresh(assignment)

    student = assignment.student
    if not send_rejection_email(student.email, assignment.title, (payload.remark or "").strip()):
        logger.warning("rejection_email_not_sent", extra={"assignment_id": assignment.id, "actor_id": current_user.id})

    return envelope(
        "Assignment rejected. The student has been notified and can resubmit.",
        {"assignment": AssignmentRead.model_validate(assignment)},
    )


@router.get("/forward-recipients")
def forward_recipients(db: Session = Depends(get_db), current_user: User = Depends(forwarder_dep)) -> dict:
    recipients = list_forward_recipients(db, current_user)
    return envelope(
        "Forward recipients retrieved",
        {"recipients": [UserBrief.model_validate(item) for item in recipients]},
    )


@router.post("/assignments/{assignment_id}/forward")
def forward_assignment(
    assignment_id: int,
    payload: ForwardRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(forwarder_dep),
) -> dict:
    assignment = workflow.forward(
        db,
        assignment_id,
        from_reviewer=current_user,
        to_reviewer_id=payload.new_reviewer_id,
        note=payload.note,
    )
    db.commit()
    db.refresh(assignment)
    return envelope(
        "Assignment forwarded successfully. The new reviewer has been notified.",
        {"assignment": AssignmentRead.model_validate(assignment)},
    )
