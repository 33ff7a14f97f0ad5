"""Shared pytest fixtures: in-memory database, API client and one account per role."""

import os

#settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"

from datetime import date

import pytest
from fastapi.testclient import TestClient

from carecoord.database import Base, SessionLocal, engine
from carecoord.main import app
from carecoord.models.user import UserRole
from carecoord.schemas.assignment import AssignPatientRequest
from carecoord.schemas.patient import PatientAccountCreate
from carecoord.schemas.user import UserCreate
from carecoord.services.patients import assign_patient
from carecoord.services.users import create_patient_account, create_user
from carecoord.utils.auth import create_access_token

PASSWORD = "Passw0rd1"


@pytest.fixture(autouse=True)
def reset_database():
    """Fresh schema for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def make_account(db, role, email, first_name, last_name, **extra):
    """Create a login plus its role record through the service layer."""
    return create_user(db, UserCreate(
        email=email,
        password=PASSWORD,
        role=role,
        first_name=first_name,
        last_name=last_name,
        **extra,
    ))


def bearer(user):
    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def create_account(db):
    """Factory for extra accounts beyond the one-per-role fixtures."""
    def _create(role, email, first_name, last_name, **extra):
        return make_account(db, role, email, first_name, last_name, **extra)
    return _create


@pytest.fixture
def admin_user(db):
    user, _ = make_account(db, UserRole.ADMIN, "admin@example.com", "Ada", "Admin")
    return user


@pytest.fixture
def doctor(db):
    """Doctor health-worker record; the login is ``doctor.user``."""
    _, worker = make_account(
        db, UserRole.DOCTOR, "doctor@example.com", "Grace", "Hopper",
        license_number="DOC-1001", specialization="General Practice",
    )
    return worker


@pytest.fixture
def vhv(db):
    _, worker = make_account(
        db, UserRole.VHV, "vhv@example.com", "Vera", "Volunteer",
        license_number="VHV-2001", region="North",
    )
    return worker


@pytest.fixture
def patient(db):
    """Jane Doe, with a login of her own (``patient.user``)."""
    return create_patient_account(db, PatientAccountCreate(
        first_name="Jane",
        last_name="Doe",
        dob=date(1990, 1, 1),
        email="jane.doe@example.com",
        password=PASSWORD,
        phone="+1 555 0100",
    ))


@pytest.fixture
def assignment(db, patient, vhv, doctor):
    assignment, _ = assign_patient(db, AssignPatientRequest(
        patient_id=patient.id, vhv_id=vhv.id, doctor_id=doctor.id,
    ))
    return assignment


@pytest.fixture
def admin_headers(admin_user):
    return bearer(admin_user)


@pytest.fixture
def doctor_headers(doctor):
    return bearer(doctor.user)


@pytest.fixture
def vhv_headers(vhv):
    return bearer(vhv.user)


@pytest.fixture
def patient_headers(patient):
    return bearer(patient.user)
