from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import json
import logging

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.core import rbac
from app.core.security import decode_token
from app.db.session import get_db
from app.models.admin import Admin
from app.models.enums import PrincipalKind, Role
from app.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)
logger = logging.getLogger("security")


def log_auth_event(event: str, *, request: Request, extra: Optional[dict] = None) -> None:
    payload = {
        "event": event,
        "request_id": request.headers.get("x-request-id"),
        "path": request.url.path,
        "method": request.method,
        "client": request.client.host if request.client else None,
    }
    if extra:
        payload.update(extra)
    logger.info(json.dumps(payload, default=str))


def get_token_payload(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> Dict[str, Any]:
    if credentials is None or not credentials.credentials:
        log_auth_event("token_missing", request=request)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required. Please login first.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_token(credentials.credentials)
        int(payload.get("sub"))
    except (JWTError, ValueError, TypeError):
        log_auth_event("token_invalid", request=request)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token. Please login again.",
        )
    return payload


def get_current_user(
    request: Request,
    payload: Dict[str, Any] = Depends(get_token_payload),
    db: Session = Depends(get_db),
) -> User:
    if payload.get("kind") != PrincipalKind.USER.value:
        log_auth_event("user_kind_required", request=request, extra={"kind": payload.get("kind")})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: insufficient role")
    user_id = int(payload["sub"])
    user = db.get(User, user_id)
    if not user:
        log_auth_event("user_missing", request=request, extra={"user_id": user_id})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account no longer exists. Please login again.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_current_admin(
    request: Request,
    payload: Dict[str, Any] = Depends(get_token_payload),
    db: Session = Depends(get_db),
) -> Admin:
    if payload.get("kind") != PrincipalKind.ADMIN.value or payload.get("role") != Role.ADMIN.value:
        log_auth_event("admin_required", request=request, extra={"role": payload.get("role")})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    admin = db.get(Admin, int(payload["sub"]))
    if not admin:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    return admin


def require_capability(capability: str) -> Callable[..., User]:
    """Build a dependency that resolves the current user and checks one capability."""
    if capability not in rbac.CAPABILITIES:
        raise KeyError(f"Unknown capability: {capability}")

    def _dependency(request: Request, user: User = Depends(get_current_user)) -> User:
        if not rbac.permits(user.role, capability):
            log_auth_event(
                "capability_denied",
                request=request,
                extra={"user_id": user.id, "role": user.role, "capability": capability},
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: insufficient role")
        return user

    return _dependency


def require_admin_capability(capability: str) -> Callable[..., Admin]:
    if capability not in rbac.CAPABILITIES:
        raise KeyError(f"Unknown capability: {capability}")

    def _dependency(request: Request, admin: Admin = Depends(get_current_admin)) -> Admin:
        if not rbac.permits(Role.ADMIN, capability):
            log_auth_event("capability_denied", request=request, extra={"admin_id": admin.id, "capability": capability})
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: insufficient role")
        return admin

    return _dependency
