from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.otp_store import OtpStore, get_otp_store
from app.core.security import create_access_token
from app.core.settings import settings
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.admin import Admin
from app.models.assignment import Assignment
from app.models.department import Department
from app.models.enums import AssignmentStatus, DepartmentType, PrincipalKind, Role
from app.models.user import User


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "uploads_dir", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "email_provider", "disabled")
    return settings


@pytest.fixture()
def db():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def otp_store(clock):
    return OtpStore(ttl=timedelta(minutes=10), clock=clock)


@pytest.fixture()
def client(db, otp_store):
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_otp_store] = lambda: otp_store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_user(db, *, name: str, role: Role, department: Department | None, user_id: int | None = None) -> User:
    user = User(
        id=user_id,
        name=name,
        email=f"{name.lower().replace(' ', '.')}@university.edu",
        hashed_password="x",
        role=role,
        department_id=department.id if department else None,
    )
    db.add(user)
    db.flush()
    return user


def make_assignment(
    db,
    *,
    student: User,
    title: str = "Distributed Systems Essay",
    status: AssignmentStatus = AssignmentStatus.DRAFT,
    reviewer: User | None = None,
    assignment_id: int | None = None,
) -> Assignment:
    assignment = Assignment(
        id=assignment_id,
        title=title,
        status=status,
        student_id=student.id,
        reviewer_id=reviewer.id if reviewer else None,
        file_path=None,
    )
    db.add(assignment)
    db.flush()
    return assignment


@pytest.fixture()
def people(db):
    """Department with student 3, professor 9, HOD 12 and a second professor 10."""
    cs = Department(name="Computer Science", type=DepartmentType.UG, address="Block A")
    physics = Department(name="Physics", type=DepartmentType.PG, address="Block B")
    db.add_all([cs, physics])
    db.flush()

    found = {
        "cs": cs,
        "physics": physics,
        "student": make_user(db, name="Student Three", role=Role.STUDENT, department=cs, user_id=3),
        "professor": make_user(db, name="Prof Nine", role=Role.PROFESSOR, department=cs, user_id=9),
        "second_professor": make_user(db, name="Prof Ten", role=Role.PROFESSOR, department=cs, user_id=10),
        "hod": make_user(db, name="Hod Twelve", role=Role.HOD, department=cs, user_id=12),
        "outsider": make_user(db, name="Prof Outside", role=Role.PROFESSOR, department=physics, user_id=20),
    }
    db.commit()
    return found


@pytest.fixture()
def draft(db, people):
    assignment = make_assignment(db, student=people["student"], assignment_id=7)
    db.commit()
    return assignment


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(
        {"sub": str(user.id), "email": user.email, "role": user.role.value, "kind": PrincipalKind.USER.value}
    )
    return {"Authorization": f"Bearer {token}"}


def admin_headers(admin: Admin) -> dict[str, str]:
    token = create_access_token(
        {"sub": str(admin.id), "email": admin.email, "role": Role.ADMIN.value, "kind": PrincipalKind.ADMIN.value}
    )
    return {"Authorization": f"Bearer {token}"}
