from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.models.enums import NotificationType
from app.models.notification import Notification
from app.models.user import User


def create_notification(
    db: Session,
    *,
    user_id: int,
    notif_type: NotificationType,
    message: str,
    assignment_id: Optional[int] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        assignment_id=assignment_id,
        type=notif_type,
        message=message,
        read=False,
    )
    db.add(notification)
    db.flush()
    return notification


def list_notifications(
    db: Session,
    user: User,
    *,
    unread_only: bool = False,
    limit: int = 50,
) -> list[Notification]:
    query = db.query(Notification).filter(Notification.user_id == user.id)
    if unread_only:
        query = query.filter(Notification.read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def unread_count(db: Session, user: User) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user.id, Notification.read.is_(False))
        .count()
    )


def mark_read(db: Session, notification_id: int, user: User) -> bool:
    """Mark one of the user's notifications as read.

    Notifications owned by someone else are left untouched and reported as
    not updated rather than raising.
    """
    notification = db.get(Notification, notification_id)
    if not notification or notification.user_id != user.id:
        return False
    if not notification.read:
        notification.read = True
        db.add(notification)
        db.flush()
    return True


def mark_all_read(db: Session, user: User) -> int:
    notifications = (
        db.query(Notification)
        .filter(Notification.user_id == user.id, Notification.read.is_(False))
        .all()
    )
    for notification in notifications:
        notification.read = True
        db.add(notification)
    db.flush()
    return len(notifications)
