from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from app.models.enums import DepartmentType
from app.schemas.base import ORMModel


class DepartmentBase(ORMModel):
    name: str = Field(min_length=1, max_length=255)
    type: DepartmentType
    address: str = Field(min_length=1)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("name", "address")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("All fields are required: name, type (UG/PG/RESEARCH), address")
        return value


class DepartmentCreate(DepartmentBase):
    pass


class DepartmentUpdate(DepartmentBase):
    pass


class DepartmentBrief(ORMModel):
    id: int
    name: str
    type: DepartmentType


class DepartmentRead(ORMModel):
    id: int
    name: str
    type: DepartmentType
    address: str
    user_count: int = 0
    created_at: datetime
    updated_at: datetime
