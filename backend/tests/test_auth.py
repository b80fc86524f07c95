from __future__ import annotations

from app.core.security import decode_token, get_password_hash
from app.models.admin import Admin
from app.models.enums import Role
from app.models.user import User


def test_register_admin(client, db):
    response = client.post("/auth/register", json={"email": "Dean@University.edu", "password": "secret123"})
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["admin"]["email"] == "dean@university.edu"
    assert db.query(Admin).count() == 1


def test_register_rejects_duplicate_and_weak_password(client):
    client.post("/auth/register", json={"email": "dean@university.edu", "password": "secret123"})

    duplicate = client.post("/auth/register", json={"email": "DEAN@university.edu", "password": "secret123"})
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == "Admin with this email already exists"

    weak = client.post("/auth/register", json={"email": "other@university.edu", "password": "abc"})
    assert weak.status_code == 400


def test_register_rejects_malformed_email(client):
    response = client.post("/auth/register", json={"email": "not-an-email", "password": "secret123"})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_admin_login_issues_admin_token(client):
    client.post("/auth/register", json={"email": "dean@university.edu", "password": "secret123"})

    response = client.post("/auth/login", json={"email": "dean@university.edu", "password": "secret123"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["tokenType"] == "bearer"
    assert data["user"]["kind"] == "ADMIN"

    claims = decode_token(data["token"])
    assert claims["role"] == "ADMIN"
    assert claims["kind"] == "ADMIN"
    assert claims["email"] == "dean@university.edu"

    dashboard = client.get("/admin/dashboard", headers={"Authorization": f"Bearer {data['token']}"})
    assert dashboard.status_code == 200


def test_user_login_issues_user_token(client, db, people):
    professor = db.get(User, 9)
    professor.hashed_password = get_password_hash("lecture42")
    db.commit()

    response = client.post("/auth/login", json={"email": "Prof.Nine@university.edu", "password": "lecture42"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user"] == {
        "id": 9,
        "email": "prof.nine@university.edu",
        "name": "Prof Nine",
        "role": "PROFESSOR",
        "kind": "USER",
        "departmentId": people["cs"].id,
    }
    claims = decode_token(data["token"])
    assert claims["sub"] == "9"
    assert claims["role"] == Role.PROFESSOR.value

    dashboard = client.get("/professor/dashboard", headers={"Authorization": f"Bearer {data['token']}"})
    assert dashboard.status_code == 200


def test_login_failures_share_one_message(client, db, people):
    db.get(User, 9).hashed_password = get_password_hash("lecture42")
    db.commit()

    wrong_password = client.post("/auth/login", json={"email": "prof.nine@university.edu", "password": "nope"})
    unknown = client.post("/auth/login", json={"email": "ghost@university.edu", "password": "lecture42"})

    for response in (wrong_password, unknown):
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid email or password"}
