from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    STUDENT = "STUDENT"
    PROFESSOR = "PROFESSOR"
    HOD = "HOD"


class PrincipalKind(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class DepartmentType(str, Enum):
    UG = "UG"
    PG = "PG"
    RESEARCH = "RESEARCH"


class AssignmentCategory(str, Enum):
    ASSIGNMENT = "ASSIGNMENT"
    THESIS = "THESIS"
    REPORT = "REPORT"


class AssignmentStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    FORWARDED = "FORWARDED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PENDING = "PENDING"

    @property
    def label(self) -> str:
        return _STATUS_PRESENTATION[self][0]

    @property
    def color(self) -> str:
        return _STATUS_PRESENTATION[self][1]

    @property
    def in_review(self) -> bool:
        return self in REVIEW_STATUSES


_STATUS_PRESENTATION: dict[AssignmentStatus, tuple[str, str]] = {
    AssignmentStatus.DRAFT: ("Draft", "gray"),
    AssignmentStatus.SUBMITTED: ("Submitted", "orange"),
    AssignmentStatus.FORWARDED: ("Forwarded", "blue"),
    AssignmentStatus.APPROVED: ("Approved", "green"),
    AssignmentStatus.REJECTED: ("Rejected", "red"),
    AssignmentStatus.PENDING: ("Pending", "yellow"),
}

# Statuses in which an assignment has exactly one active reviewer.
REVIEW_STATUSES = frozenset({AssignmentStatus.SUBMITTED, AssignmentStatus.FORWARDED})

REVIEWER_ROLES = (Role.PROFESSOR, Role.HOD)


class HistoryAction(str, Enum):
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    FORWARDED = "FORWARDED"


class NotificationType(str, Enum):
    ASSIGNMENT_SUBMITTED = "ASSIGNMENT_SUBMITTED"
    ASSIGNMENT_RESUBMITTED = "ASSIGNMENT_RESUBMITTED"
    ASSIGNMENT_FORWARDED = "ASSIGNMENT_FORWARDED"
    ASSIGNMENT_APPROVED = "ASSIGNMENT_APPROVED"
    ASSIGNMENT_REJECTED = "ASSIGNMENT_REJECTED"
