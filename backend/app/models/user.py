from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy import Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, IDMixin, TimestampMixin
from app.models.enums import Role


class User(IDMixin, TimestampMixin, Base):
    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(Enum(Role, name="role"), default=Role.STUDENT, nullable=False, index=True)
    department_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("departments.id"),
        nullable=True,
        index=True,
    )

    department: Mapped[Optional["Department"]] = relationship(back_populates="users")

    assignments: Mapped[List["Assignment"]] = relationship(
        back_populates="student",
        foreign_keys="Assignment.student_id",
        cascade="all, delete-orphan",
    )
    assignments_to_review: Mapped[List["Assignment"]] = relationship(
        back_populates="reviewer",
        foreign_keys="Assignment.reviewer_id",
    )
    history_entries: Mapped[List["AssignmentHistory"]] = relationship(
        back_populates="reviewer",
        passive_deletes="all",
    )
    notifications: Mapped[List["Notification"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def display_name(self) -> str:
        return self.name or self.email

    @classmethod
    def has_any_role(cls, roles: Iterable[Role]):
        return cls.role.in_(list(roles))
