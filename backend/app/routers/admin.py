from __future__ import annotations

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from app.core.deps import get_current_admin, require_admin_capability
from app.core.errors import Conflict, NotFound, ValidationError
from app.core.security import get_password_hash
from app.core.settings import settings
from app.db.session import get_db
from app.models.admin import Admin
from app.models.assignment import Assignment, AssignmentHistory
from app.models.department import Department
from app.models.enums import REVIEW_STATUSES, AssignmentStatus, DepartmentType, Role
from app.models.user import User
from app.schemas.base import envelope
from app.schemas.department import DepartmentCreate, DepartmentRead, DepartmentUpdate
from app.schemas.user import ASSIGNABLE_ROLES, AdminRead, UserCreate, UserRead, UserUpdate
from app.services.dashboard import admin_dashboard

router = APIRouter(prefix="/admin", tags=["admin"])

manage_departments = require_admin_capability("manage_departments")
manage_users = require_admin_capability("manage_users")


def _pagination(page: int, page_size: int, total: int) -> dict:
    return {
        "page": page,
        "pageSize": page_size,
        "total": total,
        "totalPages": max(math.ceil(total / page_size), 1),
    }


def _get_department_or_404(db: Session, department_id: int) -> Department:
    department = db.get(Department, department_id)
    if not department:
        raise NotFound("Department not found")
    return department


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def _department_read(db: Session, department: Department) -> DepartmentRead:
    user_count = db.query(func.count(User.id)).filter(User.department_id == department.id).scalar() or 0
    read = DepartmentRead.model_validate(department)
    read.user_count = user_count
    return read


def _require_password(password: Optional[str]) -> None:
    if not password or len(password) < settings.min_password_length:
        raise ValidationError(f"Password must be at least {settings.min_password_length} characters long")


@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db), admin: Admin = Depends(get_current_admin)) -> dict:
    return envelope("Dashboard data retrieved successfully", admin_dashboard(db, admin))


@router.get("/profile")
def profile(admin: Admin = Depends(get_current_admin)) -> dict:
    return envelope("Profile retrieved successfully", {"admin": AdminRead.model_validate(admin)})


# ── Departments ─────────────────────────────────────────────────────────


@router.post("/departments/create", status_code=status.HTTP_201_CREATED)
def create_department(
    payload: DepartmentCreate,
    db: Session = Depends(get_db),
    _admin: Admin = Depends(manage_departments),
) -> dict:
    if db.query(Department).filter(Department.name == payload.name).first():
        raise Conflict("Department with this name already exists")
    department = Department(name=payload.name, type=payload.type, address=payload.address)
    db.add(department)
    db.commit()
    db.refresh(department)
    return envelope("Department created successfully", {"department": _department_read(db, department)})


@router.get("/departments")
def list_departments(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
    search: Optional[str] = Query(None),
    type_filter: Optional[str] = Query(None, alias="type"),
    db: Session = Depends(get_db),
    _admin: Admin = Depends(manage_departments),
) -> dict:
    query = db.query(Department)
    if search:
        query = query.filter(Department.name.ilike(f"%{search}%"))
    if type_filter:
        try:
            query = query.filter(Department.type == DepartmentType(type_filter.strip().upper()))
        except ValueError:
            raise ValidationError("Invalid type filter. Allowed: UG, PG, RESEARCH") from None

    total = query.count()
    departments = (
        query.order_by(Department.created_at.desc(), Department.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return envelope(
        "Departments retrieved successfully",
        {
            "items": [_department_read(db, item) for item in departments],
            "pagination": _pagination(page, page_size, total),
        },
    )


@router.get("/departments/{department_id}/edit")
def get_department(
    department_id: int,
    db: Session = Depends(get_db),
    _admin: Admin = Depends(manage_departments),
) -> dict:
    department = _get_department_or_404(db, department_id)
    return envelope("Department retrieved successfully", {"department": _department_read(db, department)})


@router.put("/departments/{department_id}/update")
def update_department(
    department_id: int,
    payload: DepartmentUpdate,
    db: Session = Depends(get_db),
    _admin: Admin = Depends(manage_departments),
) -> dict:
    department = _get_department_or_404(db, department_id)
    clash = (
        db.query(Department)
        .filter(Department.name == payload.name, Department.id != department_id)
        .first()
    )
    if clash:
        raise Conflict("Another department with this name already exists")
    department.name = payload.name
    department.type = payload.type
    department.address = payload.address
    db.add(department)
    db.commit()
    db.refresh(department)
    return envelope("Department updated successfully", {"department": _department_read(db, department)})


@router.delete("/departments/{department_id}")
def delete_department(
    department_id: int,
    db: Session = Depends(get_db),
    _admin: Admin = Depends(manage_departments),
) -> dict:
    department = _get_department_or_404(db, department_id)
    if db.query(User).filter(User.department_id == department_id).count():
        raise ValidationError("Cannot delete department with associated users. Please reassign or remove users first.")
    db.delete(department)
    db.commit()
    return envelope("Department deleted successfully")


# ── Users ───────────────────────────────────────────────────────────────


@router.post("/users/create", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    _admin: Admin = Depends(manage_users),
) -> dict:
    email = payload.email.lower()
    _require_password(payload.password)
    if db.query(User).filter(User.email == email).first():
        raise Conflict("Email Already Exists!")
    if not db.get(Department, payload.department_id):
        raise NotFound("Invalid Department")

    user = User(
        name=payload.name,
        email=email,
        phone=payload.phone,
        role=payload.role,
        hashed_password=get_password_hash(payload.password),
        department_id=payload.department_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return envelope("User created successfully", {"user": UserRead.model_validate(user)})


@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    search: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    department_id: Optional[int] = Query(None, alias="departmentId"),
    db: Session = Depends(get_db),
    _admin: Admin = Depends(manage_users),
) -> dict:
    query = db.query(User).options(selectinload(User.department))
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
    if role:
        normalized = role.strip().upper()
        if normalized not in {item.value for item in ASSIGNABLE_ROLES}:
            raise ValidationError("Invalid role filter. Allowed: STUDENT, PROFESSOR, HOD")
        query = query.filter(User.role == Role(normalized))
    if department_id is not None:
        query = query.filter(User.department_id == department_id)

    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return envelope(
        "Users retrieved successfully",
        {
            "items": [UserRead.model_validate(user) for user in users],
            "pagination": _pagination(page, page_size, total),
            "filters": {"role": role, "departmentId": department_id, "search": search},
        },
    )


@router.get("/users/{user_id}/edit")
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    _admin: Admin = Depends(manage_users),
) -> dict:
    user = _get_user_or_404(db, user_id)
    return envelope("User retrieved successfully", {"user": UserRead.model_validate(user)})


@router.put("/users/{user_id}/update")
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    _admin: Admin = Depends(manage_users),
) -> dict:
    user = _get_user_or_404(db, user_id)
    email = payload.email.lower()
    clash = db.query(User).filter(User.email == email, User.id != user_id).first()
    if clash:
        raise Conflict("Another user with this email already exists")
    if not db.get(Department, payload.department_id):
        raise NotFound("Invalid Department")

    user.name = payload.name
    user.email = email
    user.phone = payload.phone
    user.role = payload.role
    user.department_id = payload.department_id
    if payload.password:
        _require_password(payload.password)
        user.hashed_password = get_password_hash(payload.password)
    db.add(user)
    db.commit()
    db.refresh(user)
    return envelope("User updated successfully", {"user": UserRead.model_validate(user)})


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    _admin: Admin = Depends(manage_users),
) -> dict:
    user = _get_user_or_404(db, user_id)
    if user.role == Role.STUDENT:
        pending = (
            db.query(Assignment)
            .filter(Assignment.student_id == user_id, Assignment.status == AssignmentStatus.PENDING)
            .count()
        )
        if pending:
            raise ValidationError("Cannot delete student with pending assignments")
    in_review = (
        db.query(Assignment)
        .filter(Assignment.reviewer_id == user_id, Assignment.status.in_(list(REVIEW_STATUSES)))
        .count()
    )
    if in_review:
        raise ValidationError("Cannot delete user with assignments under review. Forward or complete them first.")
    # History rows are permanent, so anyone who has acted on a review stays.
    if db.query(AssignmentHistory).filter(AssignmentHistory.reviewer_id == user_id).count():
        raise ValidationError("Cannot delete user with review history")
    db.delete(user)
    db.commit()
    return envelope("User deleted successfully")
