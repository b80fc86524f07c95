from __future__ import annotations

from sqlalchemy import case
from sqlalchemy.orm import Session

from app.core.errors import InvalidReviewer, ValidationError
from app.models.enums import REVIEWER_ROLES, Role
from app.models.user import User

# Recipient order: HODs first, then professors.
_REVIEWER_RANK = case((User.role == Role.HOD, 0), else_=1)


def _require_department(user: User, message: str) -> int:
    if user.department_id is None:
        raise ValidationError(message)
    return user.department_id


def list_forward_recipients(db: Session, user: User) -> list[User]:
    """Professors and HODs of the caller's department, excluding the caller."""
    department_id = _require_department(user, "You must be assigned to a department to forward assignments")
    return (
        db.query(User)
        .filter(
            User.department_id == department_id,
            User.id != user.id,
            User.has_any_role(REVIEWER_ROLES),
        )
        .order_by(_REVIEWER_RANK, User.name.asc())
        .all()
    )


def list_department_professors(db: Session, user: User) -> list[User]:
    department_id = _require_department(user, "Student must be assigned to a department")
    return (
        db.query(User)
        .filter(User.department_id == department_id, User.role == Role.PROFESSOR)
        .order_by(User.name.asc())
        .all()
    )


def resolve_submission_reviewer(db: Session, student: User, reviewer_id: int) -> User:
    reviewer = db.get(User, reviewer_id)
    if not reviewer or reviewer.role != Role.PROFESSOR:
        raise InvalidReviewer("Reviewer not found or is not a professor")
    if student.department_id is None or reviewer.department_id != student.department_id:
        raise InvalidReviewer("Reviewer must be from the same department as the student")
    return reviewer


def resolve_forward_target(db: Session, from_reviewer: User, target_id: int) -> User:
    if target_id == from_reviewer.id:
        raise ValidationError("You cannot forward an assignment to yourself")
    department_id = _require_department(from_reviewer, "You must be in a department to forward assignments")
    target = db.get(User, target_id)
    if (
        not target
        or target.role not in REVIEWER_ROLES
        or target.department_id != department_id
    ):
        raise InvalidReviewer("Selected recipient is not a valid professor or HOD in your department")
    return target
