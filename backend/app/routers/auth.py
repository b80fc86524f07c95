from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.deps import log_auth_event
from app.core.errors import Conflict, ValidationError
from app.core.security import create_access_token, get_password_hash, verify_password
from app.core.settings import settings
from app.db.session import get_db
from app.models.admin import Admin
from app.models.enums import PrincipalKind, Role
from app.models.user import User
from app.schemas.auth import LoginRequest, PrincipalRead, RegisterRequest, TokenResponse
from app.schemas.base import envelope
from app.schemas.user import AdminRead

router = APIRouter(prefix="/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid email or password"


def _issue_token(*, principal_id: int, email: str, role: Role, kind: PrincipalKind) -> str:
    return create_access_token(
        {
            "sub": str(principal_id),
            "email": email,
            "role": role.value,
            "kind": kind.value,
        }
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, request: Request, db: Session = Depends(get_db)) -> dict:
    email = payload.email.lower()
    if len(payload.password) < settings.min_password_length:
        raise ValidationError(f"Password must be at least {settings.min_password_length} characters long")
    if db.query(Admin).filter(Admin.email == email).first():
        raise Conflict("Admin with this email already exists")

    admin = Admin(email=email, hashed_password=get_password_hash(payload.password))
    db.add(admin)
    db.commit()
    db.refresh(admin)
    log_auth_event("admin_registered", request=request, extra={"admin_id": admin.id})
    return envelope("Admin registered successfully", {"admin": AdminRead.model_validate(admin)})


@router.post("/login")
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)) -> dict:
    email = payload.email.lower()

    admin = db.query(Admin).filter(Admin.email == email).first()
    if admin:
        if not verify_password(payload.password, admin.hashed_password):
            log_auth_event("login_failed", request=request, extra={"email": email, "kind": "ADMIN"})
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)
        token = _issue_token(principal_id=admin.id, email=admin.email, role=Role.ADMIN, kind=PrincipalKind.ADMIN)
        principal = PrincipalRead(id=admin.id, email=admin.email, role=Role.ADMIN, kind=PrincipalKind.ADMIN)
        log_auth_event("login_success", request=request, extra={"admin_id": admin.id})
        return envelope("Login successful", TokenResponse(token=token, user=principal))

    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        log_auth_event("login_failed", request=request, extra={"email": email, "kind": "USER"})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

    token = _issue_token(principal_id=user.id, email=user.email, role=user.role, kind=PrincipalKind.USER)
    principal = PrincipalRead(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        kind=PrincipalKind.USER,
        department_id=user.department_id,
    )
    log_auth_event("login_success", request=request, extra={"user_id": user.id})
    return envelope("Login successful", TokenResponse(token=token, user=principal))
