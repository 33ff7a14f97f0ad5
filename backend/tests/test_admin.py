"""Tests for account provisioning, admin listings and the audit trail."""

import pytest
from fastapi.testclient import TestClient

from carecoord.main import app
from carecoord.models.health_worker import HealthWorker
from carecoord.models.patient import Patient
from carecoord.models.user import User
from carecoord.scripts import create_admin
from carecoord.services import users as user_service


def create_user(client, headers, **fields):
    body = {
        "email": "new.user@example.com",
        "password": "Secret123",
        "firstName": "Nora",
        "lastName": "Nurse",
        **fields,
    }
    return client.post("/api/admin/create-user", json=body, headers=headers)


class TestCreateUser:
    """POST /api/admin/create-user."""

    def test_doctor_gets_health_worker_record(self, client, db, admin_headers):
        response = create_user(client, admin_headers, role="DOCTOR", licenseNumber="DOC-7", specialization="Pediatrics")

        assert response.status_code == 200
        body = response.json()
        assert body["role"] == "DOCTOR"
        assert body["name"] == "Nora Nurse"
        assert body["status"] == "active"
        worker = db.get(HealthWorker, body["profileId"])
        assert worker.license_number == "DOC-7"
        assert worker.user_id == body["id"]

    def test_default_license_number(self, client, db, admin_headers):
        response = create_user(client, admin_headers, role="vhv")

        worker = db.get(HealthWorker, response.json()["profileId"])
        assert worker.license_number.startswith("VHV-")

    def test_patient_gets_patient_record(self, client, db, admin_headers):
        response = create_user(client, admin_headers, role="PATIENT", dob="1985-06-15", phoneNumber="0711234567")

        patient = db.get(Patient, response.json()["profileId"])
        assert patient.user_id == response.json()["id"]
        assert patient.phone == "0711234567"
        assert str(patient.dob) == "1985-06-15"

    def test_admin_has_no_profile(self, client, admin_headers):
        response = create_user(client, admin_headers, role="ADMIN")

        assert response.json()["profileId"] is None

    def test_email_is_stored_lowercase_and_unique(self, client, admin_headers):
        create_user(client, admin_headers, role="VHV", email="Mixed.Case@Example.com")

        response = create_user(client, admin_headers, role="VHV", email="mixed.case@example.com")

        assert response.status_code == 400
        assert response.json() == {"error": "Email already registered"}

    @pytest.mark.parametrize("password", ["short1A", "alllowercase1", "NoDigitsHere"])
    def test_weak_passwords(self, client, admin_headers, password):
        response = create_user(client, admin_headers, role="VHV", password=password)

        assert response.status_code == 400
        assert response.json()["error"].startswith("password: ")

    def test_unknown_role(self, client, admin_headers):
        response = create_user(client, admin_headers, role="SURGEON")

        assert response.status_code == 400

    def test_admin_only(self, client, doctor_headers):
        response = create_user(client, doctor_headers, role="VHV")

        assert response.status_code == 403
        assert response.json() == {"error": "Access denied"}


class TestCreateUserRollback:
    """A failed role record insert must not leave a login behind."""

    def test_duplicate_license_rolls_back_user(self, client, db, admin_headers, doctor):
        response = create_user(client, admin_headers, role="DOCTOR", licenseNumber="DOC-1001")

        assert response.status_code == 400
        assert response.json() == {"error": "License number DOC-1001 is already registered"}
        assert db.query(User).filter(User.email == "new.user@example.com").count() == 0

    def test_unexpected_record_failure_rolls_back_user(self, db, admin_headers, monkeypatch):
        def broken_insert(self, db, user, data):
            raise RuntimeError("patients table unavailable")

        monkeypatch.setattr(user_service.PatientProfile, "create_record", broken_insert)
        client = TestClient(app, raise_server_exceptions=False)

        response = create_user(client, admin_headers, role="PATIENT")

        assert response.status_code == 500
        assert response.json() == {"error": "patients table unavailable"}
        assert db.query(User).filter(User.email == "new.user@example.com").count() == 0
        assert db.query(Patient).count() == 0

    def test_create_patient_account_rolls_back(self, db, admin_headers, monkeypatch):
        def broken_insert(self, db, user, data):
            raise RuntimeError("insert failed")

        monkeypatch.setattr(user_service.PatientProfile, "create_record", broken_insert)
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post("/api/admin/create-patient", json={
            "firstName": "Jane", "lastName": "Doe", "dob": "1990-01-01",
            "email": "jane@example.com", "password": "Welcome123",
        }, headers=admin_headers)

        assert response.status_code == 500
        assert user_service.get_user_by_email(db, "jane@example.com") is None


class TestCreatePatient:
    """POST /api/admin/create-patient."""

    def test_creates_record_and_login(self, client, admin_headers):
        response = client.post("/api/admin/create-patient", json={
            "firstName": "Jane",
            "lastName": "Doe",
            "dob": "1990-01-01",
            "email": "jane@example.com",
            "password": "Welcome123",
            "nationalId": "199012345678",
        }, headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["patient"]["name"] == "Jane Doe"
        assert body["patient"]["dob"] == "1990-01-01"
        assert body["patient"]["userId"] is not None

        login = client.post("/api/auth/login", json={"email": "jane@example.com", "password": "Welcome123"})
        assert login.json()["role"] == "PATIENT"

    def test_dob_is_required(self, client, admin_headers):
        response = client.post("/api/admin/create-patient", json={
            "firstName": "Jane", "lastName": "Doe", "email": "jane@example.com", "password": "Welcome123",
        }, headers=admin_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "dob is required"}


class TestListings:
    """GET /api/admin/*."""

    def test_role_listings(self, client, admin_headers, admin_user, doctor, vhv, patient):
        admins = client.get("/api/admin/admins", headers=admin_headers).json()
        doctors = client.get("/api/admin/doctors", headers=admin_headers).json()
        vhvs = client.get("/api/admin/vhvs", headers=admin_headers).json()
        patients = client.get("/api/admin/patients", headers=admin_headers).json()

        assert [a["email"] for a in admins] == ["admin@example.com"]
        assert [d["licenseNumber"] for d in doctors] == ["DOC-1001"]
        assert doctors[0]["name"] == "Grace Hopper"
        assert [v["region"] for v in vhvs] == ["North"]
        assert [p["name"] for p in patients] == ["Jane Doe"]

    def test_users_filtered_by_role(self, client, admin_headers, doctor, vhv, patient):
        users = client.get("/api/admin/users", params={"role": "VHV"}, headers=admin_headers).json()

        assert [u["email"] for u in users] == ["vhv@example.com"]
        assert users[0]["profileId"] == vhv.id

    def test_deactivate_blocks_login(self, client, admin_headers, vhv):
        response = client.patch(
            f"/api/admin/users/{vhv.user_id}", json={"isActive": False}, headers=admin_headers,
        )
        assert response.json()["status"] == "inactive"

        login = client.post("/api/auth/login", json={"email": "vhv@example.com", "password": "Passw0rd1"})
        assert login.status_code == 403

        vhvs = client.get("/api/admin/vhvs", headers=admin_headers).json()
        assert vhvs[0]["status"] == "inactive"

    def test_stats(self, client, admin_headers, admin_user, doctor, vhv, patient, assignment):
        stats = client.get("/api/admin/stats", headers=admin_headers).json()

        assert stats == {
            "totalUsers": 4,
            "totalAdmins": 1,
            "totalDoctors": 1,
            "totalVHVs": 1,
            "totalPatients": 1,
            "totalTasks": 0,
            "totalAlerts": 0,
            "activeAlerts": 0,
            "pendingReviews": 0,
        }

    def test_non_admin_is_refused(self, client, vhv_headers):
        assert client.get("/api/admin/stats", headers=vhv_headers).status_code == 403


class TestAuditLogs:
    """GET /api/admin/audit-logs."""

    def test_mutations_are_recorded(self, client, admin_headers):
        create_user(client, admin_headers, role="VHV")

        logs = client.get("/api/admin/audit-logs", headers=admin_headers).json()

        assert logs["total"] == 1
        entry = logs["logs"][0]
        assert entry["action"] == "CREATE"
        assert entry["entityType"] == "USER"
        assert entry["userEmail"] == "admin@example.com"
        assert entry["metadata"]["role"] == "VHV"
        assert entry["requestPath"] == "/api/admin/create-user"

    def test_pagination(self, client, admin_headers):
        for i in range(3):
            create_user(client, admin_headers, role="VHV", email=f"vhv{i}@example.com")

        page = client.get(
            "/api/admin/audit-logs", params={"page": 2, "perPage": 2}, headers=admin_headers,
        ).json()

        assert page["total"] == 3
        assert page["page"] == 2
        assert page["perPage"] == 2
        assert len(page["logs"]) == 1


class TestCreateAdminScript:
    """carecoord-create-admin bootstrap command."""

    ARGS = ["--email", "root@example.com", "--password", "Bootstrap1", "--first-name", "Root", "--last-name", "Admin"]

    def test_creates_admin_who_can_log_in(self, client):
        assert create_admin.main(self.ARGS) == 0

        login = client.post("/api/auth/login", json={"email": "root@example.com", "password": "Bootstrap1"})
        assert login.json()["role"] == "ADMIN"

    def test_duplicate_email_fails(self):
        create_admin.main(self.ARGS)

        assert create_admin.main(self.ARGS) == 1

    def test_weak_password_fails(self, db):
        args = list(self.ARGS)
        args[3] = "weak"

        assert create_admin.main(args) == 1
        assert db.query(User).count() == 0
