from __future__ import annotations

from pydantic import EmailStr

from app.models.enums import PrincipalKind, Role
from app.schemas.base import ORMModel


class RegisterRequest(ORMModel):
    email: EmailStr
    password: str


class LoginRequest(ORMModel):
    email: EmailStr
    password: str


class PrincipalRead(ORMModel):
    id: int
    email: str
    name: str | None = None
    role: Role
    kind: PrincipalKind
    department_id: int | None = None


class TokenResponse(ORMModel):
    token: str
    token_type: str = "bearer"
    user: PrincipalRead
