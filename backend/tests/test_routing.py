from __future__ import annotations

import pytest

from app.core.errors import ValidationError
from app.models.enums import Role
from app.services.routing import list_department_professors, list_forward_recipients

from conftest import make_user


def test_forward_recipients_exclude_caller_and_other_departments(db, people):
    recipients = list_forward_recipients(db, people["professor"])
    ids = {user.id for user in recipients}
    assert ids == {10, 12}


def test_forward_recipients_exclude_students(db, people):
    recipients = list_forward_recipients(db, people["hod"])
    assert all(user.role in (Role.PROFESSOR, Role.HOD) for user in recipients)
    assert {user.id for user in recipients} == {9, 10}


def test_department_professors_sorted_by_name(db, people):
    make_user(db, name="Prof Alpha", role=Role.PROFESSOR, department=people["cs"])
    db.commit()
    names = [user.name for user in list_department_professors(db, people["student"])]
    assert names == ["Prof Alpha", "Prof Nine", "Prof Ten"]


def test_caller_without_department(db, people):
    loner = make_user(db, name="Prof Loner", role=Role.PROFESSOR, department=None)
    with pytest.raises(ValidationError):
        list_forward_recipients(db, loner)
    with pytest.raises(ValidationError):
        list_department_professors(db, loner)


def test_forward_recipients_order_hod_first_then_name(db, people):
    make_user(db, name="Aaron Hod", role=Role.HOD, department=people["cs"])
    make_user(db, name="Prof Alpha", role=Role.PROFESSOR, department=people["cs"])
    db.commit()

    names = [user.name for user in list_forward_recipients(db, people["professor"])]
    assert names == ["Aaron Hod", "Hod Twelve", "Prof Alpha", "Prof Ten"]
