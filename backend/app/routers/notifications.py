from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.base import envelope
from app.schemas.notification import NotificationRead
from app.services.notifications import list_notifications, mark_all_read, mark_read, unread_count

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def list_my_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    items = list_notifications(db, current_user, unread_only=unread_only, limit=limit)
    return envelope(
        "Notifications retrieved successfully",
        {
            "notifications": [NotificationRead.model_validate(item) for item in items],
            "unreadCount": unread_count(db, current_user),
        },
    )


@router.post("/{notification_id}/read")
def read_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    updated = mark_read(db, notification_id, current_user)
    db.commit()
    return envelope("Notification marked as read", {"updated": updated})


@router.post("/read-all")
def read_all_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    count = mark_all_read(db, current_user)
    db.commit()
    return envelope("All notifications marked as read", {"count": count})
