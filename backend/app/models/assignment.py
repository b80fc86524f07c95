from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, CreatedAtMixin, IDMixin, TimestampMixin
from app.models.enums import AssignmentCategory, AssignmentStatus, HistoryAction


class Assignment(IDMixin, TimestampMixin, Base):
    __tablename__ = "assignments"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[AssignmentCategory] = mapped_column(
        Enum(AssignmentCategory, name="assignment_category"),
        default=AssignmentCategory.ASSIGNMENT,
        nullable=False,
    )
    status: Mapped[AssignmentStatus] = mapped_column(
        Enum(AssignmentStatus, name="assignment_status"),
        default=AssignmentStatus.DRAFT,
        nullable=False,
        index=True,
    )
    file_path: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    student_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reviewer_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    student: Mapped["User"] = relationship(back_populates="assignments", foreign_keys=[student_id])
    reviewer: Mapped[Optional["User"]] = relationship(
        back_populates="assignments_to_review",
        foreign_keys=[reviewer_id],
    )
    history: Mapped[List["AssignmentHistory"]] = relationship(
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by=lambda: [AssignmentHistory.created_at, AssignmentHistory.id],
    )


class AssignmentHistory(IDMixin, CreatedAtMixin, Base):
    """Append-only review trail; one row per status transition."""

    __tablename__ = "assignment_history"

    assignment_id: Mapped[int] = mapped_column(
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reviewer_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    action: Mapped[HistoryAction] = mapped_column(
        Enum(HistoryAction, name="history_action"),
        nullable=False,
    )
    remark: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    signature: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    assignment: Mapped["Assignment"] = relationship(back_populates="history")
    reviewer: Mapped["User"] = relationship(back_populates="history_entries")
