"""Tests for the application shell: error envelope, headers and health."""

import pytest
from fastapi.testclient import TestClient

from carecoord.errors import InvalidTransitionError, NotFoundError
from carecoord.main import app
from carecoord.models.intake import IntakeStatus


class TestErrorEnvelope:
    def test_invalid_json(self, client, admin_headers):
        response = client.post(
            "/api/admin/create-user",
            content=b"{not json",
            headers={**admin_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON body"}

    def test_wrong_type_names_the_field(self, client, doctor_headers):
        response = client.post("/api/tasks", json={
            "title": "Visit", "patientId": "abc", "vhvId": 1, "doctorId": 1,
        }, headers=doctor_headers)

        assert response.status_code == 400
        assert response.json()["error"].startswith("patientId: ")

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}

    def test_unexpected_errors_become_500(self, admin_headers, monkeypatch):
        def explode(db):
            raise RuntimeError("stats unavailable")

        monkeypatch.setattr("carecoord.services.users.get_admin_stats", explode)
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get("/api/admin/stats", headers=admin_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "stats unavailable"}


class TestDomainErrors:
    def test_not_found_message(self):
        error = NotFoundError("Intake", 12)

        assert error.status_code == 404
        assert error.message == "Intake 12 not found"
        assert error.entity_id == 12

    @pytest.mark.parametrize("current,target", [
        (IntakeStatus.DRAFT, IntakeStatus.APPROVED),
        ("DRAFT", "APPROVED"),
    ])
    def test_transition_message(self, current, target):
        error = InvalidTransitionError("intake", current, target)

        assert error.status_code == 409
        assert str(error) == "Cannot move intake from DRAFT to APPROVED"


class TestShell:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}
        assert client.get("/").json() == {"message": "CareCoord API is running"}

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Cache-Control"] == "no-store"

    def test_cors_preflight(self, client):
        response = client.options("/api/auth/login", headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
        })

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
