from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import computed_field

from app.models.enums import AssignmentCategory, AssignmentStatus, HistoryAction
from app.schemas.base import ORMModel
from app.schemas.user import UserBrief


class StatusPresentation(ORMModel):
    status: AssignmentStatus

    @computed_field(alias="statusLabel")
    @property
    def status_label(self) -> str:
        return self.status.label

    @computed_field(alias="statusColor")
    @property
    def status_color(self) -> str:
        return self.status.color


class AssignmentSummary(StatusPresentation):
    id: int
    title: str
    created_at: datetime


class AssignmentRead(StatusPresentation):
    id: int
    title: str
    description: Optional[str] = None
    category: AssignmentCategory
    file_path: Optional[str] = None
    created_at: datetime
    submitted_at: Optional[datetime] = None
    reviewer: Optional[UserBrief] = None


class HistoryRead(ORMModel):
    id: int
    action: HistoryAction
    remark: Optional[str] = None
    signature: Optional[str] = None
    created_at: datetime
    reviewer: UserBrief


class AssignmentDetail(AssignmentRead):
    student: UserBrief
    history: List[HistoryRead] = []


class PendingReview(ORMModel):
    id: int
    title: str
    status: AssignmentStatus
    student_name: str
    student_email: str
    submitted_at: Optional[datetime] = None
    days_pending: int


class Pagination(ORMModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class SubmitRequest(ORMModel):
    reviewer_id: Optional[int] = None


class RejectRequest(ORMModel):
    remark: Optional[str] = None


class ForwardRequest(ORMModel):
    new_reviewer_id: Optional[int] = None
    note: Optional[str] = None


class ApprovalCodeRequest(ORMModel):
    remarks: Optional[str] = None
    signature: Optional[str] = None


class ApprovalVerifyRequest(ORMModel):
    otp: Optional[str] = None
    remarks: Optional[str] = None
    signature: Optional[str] = None
