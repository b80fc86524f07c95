from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from app.models.enums import Role
from app.schemas.base import ORMModel
from app.schemas.department import DepartmentBrief

# Roles an administrator may assign to a user account.
ASSIGNABLE_ROLES = (Role.STUDENT, Role.PROFESSOR, Role.HOD)


def _normalize_role(value):
    if isinstance(value, str):
        value = value.strip().upper()
    if value not in {role.value for role in ASSIGNABLE_ROLES}:
        raise ValueError("Invalid role")
    return value


class UserBrief(ORMModel):
    id: int
    name: str
    email: str
    role: Role


class UserBase(ORMModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = None
    role: Role
    department_id: int

    @field_validator("role", mode="before")
    @classmethod
    def check_role(cls, value):
        return _normalize_role(value)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Missing required fields")
        return value


class UserCreate(UserBase):
    password: str


class UserUpdate(UserBase):
    password: Optional[str] = None


class UserRead(ORMModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    role: Role
    department_id: Optional[int] = None
    department: Optional[DepartmentBrief] = None
    created_at: datetime
    updated_at: datetime


class AdminRead(ORMModel):
    id: int
    email: str
    created_at: datetime
