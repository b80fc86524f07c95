"""Import all models so SQLAlchemy metadata is fully registered."""

from app.db.base import Base

from app.models.admin import Admin
from app.models.assignment import Assignment, AssignmentHistory
from app.models.department import Department
from app.models.enums import (
    AssignmentCategory,
    AssignmentStatus,
    DepartmentType,
    HistoryAction,
    NotificationType,
    PrincipalKind,
    Role,
)
from app.models.notification import Notification
from app.models.user import User

__all__ = [
    "Base",
    "Admin",
    "User",
    "Role",
    "PrincipalKind",
    "Department",
    "DepartmentType",
    "Assignment",
    "AssignmentHistory",
    "AssignmentCategory",
    "AssignmentStatus",
    "HistoryAction",
    "Notification",
    "NotificationType",
]
