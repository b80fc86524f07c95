from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.models.assignment import AssignmentHistory
from app.models.enums import HistoryAction


def append_history(
    db: Session,
    *,
    assignment_id: int,
    actor_id: int,
    action: HistoryAction,
    remark: Optional[str] = None,
    signature: Optional[str] = None,
) -> AssignmentHistory:
    entry = AssignmentHistory(
        assignment_id=assignment_id,
        reviewer_id=actor_id,
        action=action,
        remark=remark or None,
        signature=signature or None,
    )
    db.add(entry)
    db.flush()
    return entry


def latest_actor(db: Session, *, assignment_id: int, action: HistoryAction) -> Optional[int]:
    """Return the actor of the most recent ``action`` entry for an assignment."""
    entry = (
        db.query(AssignmentHistory)
        .filter(
            AssignmentHistory.assignment_id == assignment_id,
            AssignmentHistory.action == action,
        )
        .order_by(AssignmentHistory.created_at.desc(), AssignmentHistory.id.desc())
        .first()
    )
    return entry.reviewer_id if entry else None
