from __future__ import annotations

from datetime import datetime
from typing import Optional

from app.models.enums import NotificationType
from app.schemas.base import ORMModel


class NotificationRead(ORMModel):
    id: int
    user_id: int
    assignment_id: Optional[int] = None
    type: NotificationType
    message: str
    read: bool
    created_at: datetime
