from __future__ import annotations

import pytest

from app.core.settings import settings
from app.main import check_production_settings

from conftest import auth_headers


def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_version(client):
    response = client.get("/version")
    assert response.status_code == 200
    assert "version" in response.json()


def test_metrics_exposes_workflow_counters(client, people, draft):
    client.post(
        "/student/assignments/7/submit",
        headers=auth_headers(people["student"]),
        json={"reviewerId": 9},
    )
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "assignment_transitions_total" in response.text
    assert "http_server_requests_total" in response.text


def test_request_id_is_echoed(client):
    response = client.get("/healthz", headers={"X-Request-Id": "abc-123"})
    assert response.headers["X-Request-Id"] == "abc-123"


def test_unknown_route_uses_envelope(client):
    response = client.get("/nowhere")
    assert response.status_code == 404
    assert response.json()["success"] is False


def _production(**overrides):
    values = {
        "environment": "production",
        "jwt_secret": "a-real-secret",
        "allow_origins": ["https://approvals.university.edu"],
        "email_provider": "smtp",
    }
    values.update(overrides)
    return settings.model_copy(update=values)


def test_production_settings_accepted_when_configured():
    check_production_settings(_production())


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"allow_origins": ["*"]}, "ALLOW_ORIGINS"),
        ({"jwt_secret": "change_me"}, "JWT_SECRET"),
        ({"email_provider": "disabled"}, "EMAIL_PROVIDER"),
    ],
)
def test_production_refuses_development_defaults(overrides, message):
    with pytest.raises(RuntimeError, match=message):
        check_production_settings(_production(**overrides))


def test_development_allows_disabled_email():
    check_production_settings(settings.model_copy(update={"environment": "development", "email_provider": "disabled"}))
