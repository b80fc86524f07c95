from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.db.base import as_utc, utcnow
from app.models.admin import Admin
from app.models.assignment import Assignment
from app.models.department import Department
from app.models.enums import REVIEW_STATUSES, AssignmentStatus, Role
from app.models.user import User
from app.schemas.assignment import AssignmentSummary, PendingReview

RECENT_LIMIT = 5
# Statuses broken out individually on the student dashboard.
DASHBOARD_STATUSES = (
    AssignmentStatus.DRAFT,
    AssignmentStatus.SUBMITTED,
    AssignmentStatus.APPROVED,
    AssignmentStatus.REJECTED,
)


def days_pending(submitted_at: Optional[datetime], now: Optional[datetime] = None) -> int:
    if submitted_at is None:
        return 0
    now = now or utcnow()
    return max((now - as_utc(submitted_at)).days, 0)


def status_totals(db: Session, student_id: int) -> dict[AssignmentStatus, int]:
    totals = {item: 0 for item in AssignmentStatus}
    rows = (
        db.query(Assignment.status, func.count(Assignment.id))
        .filter(Assignment.student_id == student_id)
        .group_by(Assignment.status)
        .all()
    )
    for status, count in rows:
        totals[AssignmentStatus(status)] = count
    return totals


def student_dashboard(db: Session, student: User) -> dict[str, Any]:
    totals = status_totals(db, student.id)
    total = sum(totals.values())
    recent = (
        db.query(Assignment)
        .filter(Assignment.student_id == student.id)
        .order_by(Assignment.created_at.desc(), Assignment.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    return {
        "student": {"id": student.id, "name": student.name, "email": student.email},
        "assignments": {
            "total": total,
            "pending": totals[AssignmentStatus.PENDING],
            "inReview": sum(totals[item] for item in REVIEW_STATUSES),
            "approved": totals[AssignmentStatus.APPROVED],
            "rejected": totals[AssignmentStatus.REJECTED],
        },
        "statistics": {
            "totalAssignments": total,
            "statusCounts": [
                {"status": item.value, "label": item.label, "count": totals[item], "color": item.color}
                for item in DASHBOARD_STATUSES
            ],
            "summary": {item.value.lower(): totals[item] for item in AssignmentStatus},
        },
        "recentSubmissions": [AssignmentSummary.model_validate(item) for item in recent],
    }


def professor_dashboard(db: Session, reviewer: User, now: Optional[datetime] = None) -> dict[str, Any]:
    now = now or utcnow()
    pending = (
        db.query(Assignment)
        .options(selectinload(Assignment.student))
        .filter(
            Assignment.reviewer_id == reviewer.id,
            Assignment.status.in_(list(REVIEW_STATUSES)),
        )
        .order_by(Assignment.submitted_at.asc(), Assignment.id.asc())
        .all()
    )
    rows = [
        PendingReview(
            id=item.id,
            title=item.title,
            status=item.status,
            student_name=item.student.name,
            student_email=item.student.email,
            submitted_at=item.submitted_at,
            days_pending=days_pending(item.submitted_at, now),
        )
        for item in pending
    ]
    return {"pendingCount": len(rows), "assignments": rows}


def admin_dashboard(db: Session, admin: Admin) -> dict[str, Any]:
    users_by_role = dict(
        db.query(User.role, func.count(User.id)).group_by(User.role).all()
    )
    return {
        "admin": {"id": admin.id, "email": admin.email},
        "departments": db.query(func.count(Department.id)).scalar() or 0,
        "users": {
            role.value.lower(): users_by_role.get(role, 0)
            for role in (Role.STUDENT, Role.PROFESSOR, Role.HOD)
        },
        "assignments": db.query(func.count(Assignment.id)).scalar() or 0,
    }
