"""Assignment lifecycle transitions.

Every transition validates the current status, mutates the assignment, appends
one history entry and emits one notification inside the caller's session. The
caller commits once; nothing here commits, so a failure part-way leaves no
partial writes behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import InvalidReviewer, InvalidState, NotFound, ValidationError
from app.core.observability import record_transition
from app.core.security import signature_digest
from app.core.settings import settings
from app.db.base import utcnow
from app.models.assignment import Assignment
from app.models.enums import (
    REVIEW_STATUSES,
    AssignmentCategory,
    AssignmentStatus,
    HistoryAction,
    NotificationType,
)
from app.models.user import User
from app.services import routing
from app.services.history import append_history, latest_actor
from app.services.notifications import create_notification

logger = logging.getLogger("workflow")

NOT_PENDING_REVIEW = "Assignment not found or not pending your review"


@dataclass
class ResubmitResult:
    assignment: Assignment
    replaced_file_path: Optional[str] = None


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def _log_transition(action: str, assignment: Assignment, actor_id: int) -> None:
    record_transition(action)
    logger.info(
        "assignment_transition",
        extra={
            "assignment_id": assignment.id,
            "action": action,
            "actor_id": actor_id,
        },
    )


def normalize_title(title: Optional[str]) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title is required and cannot be empty")
    return cleaned


def normalize_category(category: Optional[str]) -> AssignmentCategory:
    if category is None or not str(category).strip():
        return AssignmentCategory.ASSIGNMENT
    try:
        return AssignmentCategory(str(category).strip().upper())
    except ValueError:
        allowed = ", ".join(item.value for item in AssignmentCategory)
        raise ValidationError(f"Invalid category. Allowed: {allowed}") from None


def create_assignment(
    db: Session,
    *,
    student: User,
    title: Optional[str],
    file_path: str,
    description: Optional[str] = None,
    category: Optional[str] = None,
) -> Assignment:
    assignment = Assignment(
        title=normalize_title(title),
        description=(description or "").strip() or None,
        category=normalize_category(category),
        status=AssignmentStatus.DRAFT,
        file_path=file_path,
        student_id=student.id,
    )
    db.add(assignment)
    db.flush()
    logger.info("assignment_created", extra={"assignment_id": assignment.id, "actor_id": student.id})
    return assignment


def get_owned_assignment(db: Session, assignment_id: int, student: User) -> Assignment:
    assignment = db.get(Assignment, assignment_id)
    if not assignment or assignment.student_id != student.id:
        raise NotFound("Assignment not found")
    return assignment


def get_assignment_under_review(
    db: Session,
    assignment_id: int,
    reviewer: User,
    message: str = NOT_PENDING_REVIEW,
) -> Assignment:
    """Return the assignment only while it is in review and assigned to ``reviewer``."""
    assignment = (
        db.query(Assignment)
        .filter(
            Assignment.id == assignment_id,
            Assignment.reviewer_id == reviewer.id,
            Assignment.status.in_(list(REVIEW_STATUSES)),
        )
        .first()
    )
    if not assignment:
        raise NotFound(message)
    return assignment


def submit(db: Session, assignment_id: int, *, student: User, reviewer_id: Optional[int]) -> Assignment:
    if reviewer_id is None:
        raise ValidationError("Reviewer ID is required")
    assignment = get_owned_assignment(db, assignment_id, student)
    if assignment.status != AssignmentStatus.DRAFT:
        raise InvalidState(
            f"Assignment cannot be submitted. Current status: {assignment.status.value}. "
            "Only DRAFT assignments can be submitted."
        )
    reviewer = routing.resolve_submission_reviewer(db, student, reviewer_id)

    assignment.status = AssignmentStatus.SUBMITTED
    assignment.reviewer_id = reviewer.id
    assignment.submitted_at = utcnow()
    db.add(assignment)

    append_history(
        db,
        assignment_id=assignment.id,
        actor_id=reviewer.id,
        action=HistoryAction.SUBMITTED,
        remark=f"Assignment submitted for review to {reviewer.display_name}",
        signature=reviewer.display_name,
    )
    create_notification(
        db,
        user_id=reviewer.id,
        notif_type=NotificationType.ASSIGNMENT_SUBMITTED,
        message=f'New assignment "{assignment.title}" submitted by student for review',
        assignment_id=assignment.id,
    )
    db.flush()
    _log_transition("submit", assignment, student.id)
    return assignment


def _original_reviewer_id(db: Session, assignment: Assignment) -> Optional[int]:
    # Rejection clears reviewer_id; the rejecting reviewer is kept in history.
    if assignment.reviewer_id is not None:
        return assignment.reviewer_id
    return latest_actor(db, assignment_id=assignment.id, action=HistoryAction.REJECTED)


def resubmit(
    db: Session,
    assignment_id: int,
    *,
    student: User,
    description: Optional[str] = None,
    file_path: Optional[str] = None,
) -> ResubmitResult:
    assignment = get_owned_assignment(db, assignment_id, student)
    if assignment.status != AssignmentStatus.REJECTED:
        raise InvalidState(
            f"Assignment cannot be resubmitted. Current status: {assignment.status.value}. "
            "Only REJECTED assignments can be resubmitted."
        )
    reviewer_id = _original_reviewer_id(db, assignment)
    reviewer = db.get(User, reviewer_id) if reviewer_id is not None else None
    if reviewer is None:
        raise InvalidState("Original reviewer not found. Cannot resubmit.")

    replaced: Optional[str] = None
    if description is not None:
        assignment.description = description.strip() or None
    if file_path:
        replaced = assignment.file_path
        assignment.file_path = file_path

    assignment.status = AssignmentStatus.SUBMITTED
    assignment.reviewer_id = reviewer.id
    assignment.submitted_at = utcnow()
    db.add(assignment)

    if file_path:
        remark = "Assignment resubmitted with new file."
    else:
        remark = "Assignment resubmitted. Original file retained."
    if description is not None:
        remark = f"{remark} Description updated."

    append_history(
        db,
        assignment_id=assignment.id,
        actor_id=reviewer.id,
        action=HistoryAction.SUBMITTED,
        remark=remark,
        signature="Student Resubmission",
    )
    create_notification(
        db,
        user_id=reviewer.id,
        notif_type=NotificationType.ASSIGNMENT_RESUBMITTED,
        message=f'Assignment "{assignment.title}" has been resubmitted by the student',
        assignment_id=assignment.id,
    )
    db.flush()
    _log_transition("resubmit", assignment, student.id)
    return ResubmitResult(assignment=assignment, replaced_file_path=replaced)


def reject(db: Session, assignment_id: int, *, reviewer: User, remark: Optional[str]) -> Assignment:
    feedback = (remark or "").strip()
    if len(feedback) < settings.reject_remark_min_length:
        raise ValidationError(
            f"Feedback is required and must be at least {settings.reject_remark_min_length} "
            "characters so the student can improve."
        )
    assignment = get_assignment_under_review(db, assignment_id, reviewer)

    assignment.status = AssignmentStatus.REJECTED
    assignment.reviewer_id = None
    db.add(assignment)

    append_history(
        db,
        assignment_id=assignment.id,
        actor_id=reviewer.id,
        action=HistoryAction.REJECTED,
        remark=feedback,
        signature=reviewer.display_name,
    )
    create_notification(
        db,
        user_id=assignment.student_id,
        notif_type=NotificationType.ASSIGNMENT_REJECTED,
        message=f'Your assignment "{assignment.title}" has been rejected. Feedback: {_truncate(feedback, 100)}',
        assignment_id=assignment.id,
    )
    db.flush()
    _log_transition("reject", assignment, reviewer.id)
    return assignment


def forward(
    db: Session,
    assignment_id: int,
    *,
    from_reviewer: User,
    to_reviewer_id: Optional[int],
    note: Optional[str] = None,
) -> Assignment:
    if to_reviewer_id is None:
        raise ValidationError("Please select a recipient to forward to")
    target = routing.resolve_forward_target(db, from_reviewer, to_reviewer_id)
    assignment = get_assignment_under_review(
        db,
        assignment_id,
        from_reviewer,
        message="Assignment not found or not under your review",
    )
    if assignment.student.department_id != target.department_id:
        raise InvalidReviewer("Selected recipient is not in the student's department")

    forward_note = (note or "").strip()

    assignment.reviewer_id = target.id
    assignment.status = AssignmentStatus.FORWARDED
    db.add(assignment)

    append_history(
        db,
        assignment_id=assignment.id,
        actor_id=from_reviewer.id,
        action=HistoryAction.FORWARDED,
        remark=forward_note or None,
        signature=from_reviewer.display_name,
    )
    if forward_note:
        message = (
            f'Assignment "{assignment.title}" forwarded to you for review. '
            f"Note: {_truncate(forward_note, 150)}"
        )
    else:
        message = f'Assignment "{assignment.title}" has been forwarded to you for review.'
    create_notification(
        db,
        user_id=target.id,
        notif_type=NotificationType.ASSIGNMENT_FORWARDED,
        message=message,
        assignment_id=assignment.id,
    )
    db.flush()
    _log_transition("forward", assignment, from_reviewer.id)
    return assignment


def approve(
    db: Session,
    assignment_id: int,
    *,
    approver: User,
    remarks: Optional[str] = None,
    signature: Optional[str] = None,
) -> Assignment:
    assignment = get_assignment_under_review(
        db,
        assignment_id,
        approver,
        message="Assignment not found or already processed",
    )
    signed = (signature or "").strip()

    assignment.status = AssignmentStatus.APPROVED
    db.add(assignment)

    append_history(
        db,
        assignment_id=assignment.id,
        actor_id=approver.id,
        action=HistoryAction.APPROVED,
        remark=(remarks or "").strip() or None,
        signature=signature_digest(signed) if signed else approver.display_name,
    )
    create_notification(
        db,
        user_id=assignment.student_id,
        notif_type=NotificationType.ASSIGNMENT_APPROVED,
        message=f'Your assignment "{assignment.title}" has been approved.',
        assignment_id=assignment.id,
    )
    db.flush()
    _log_transition("approve", assignment, approver.id)
    return assignment
