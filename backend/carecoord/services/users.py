"""Account provisioning and the admin listings.

Each role owns a ``RoleProfile`` that knows which table holds its record and
how to create that record. ``create_user`` picks the profile once from the
requested role; there is no role switch anywhere else in the flow.
"""
import logging
import time
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from ..errors import NotFoundError, ValidationError
from ..models.emergency import EmergencyAlert, EmergencyStatus
from ..models.health_worker import HealthWorker, HealthWorkerType
from ..models.intake import IntakeSubmission, IntakeStatus
from ..models.patient import Patient
from ..models.task import Task
from ..models.user import User, UserRole
from ..schemas.patient import PatientAccountCreate
from ..schemas.user import AdminStats, UserCreate, UserUpdate
from ..utils.auth import get_password_hash

logger = logging.getLogger(__name__)


class RoleProfile:
    """Role-specific half of account creation."""

    role: UserRole
    table_name = "users"

    def default_fields(self, data: UserCreate) -> Dict:
        return {}

    def create_record(self, db: Session, user: User, data: UserCreate):
        """Insert the role record for a freshly flushed ``user``. Admins have none."""
        return None


class AdminProfile(RoleProfile):
    role = UserRole.ADMIN


class HealthWorkerProfile(RoleProfile):
    table_name = "health_workers"
    worker_type: HealthWorkerType
    license_prefix: str

    def default_fields(self, data: UserCreate) -> Dict:
        return {
            "license_number": data.license_number or f"{self.license_prefix}-{int(time.time() * 1000)}",
            "specialization": data.specialization,
            "hospital_affiliation": data.hospital_affiliation,
            "region": data.region,
            "training_level": data.training_level,
        }

    def create_record(self, db: Session, user: User, data: UserCreate) -> HealthWorker:
        fields = self.default_fields(data)
        taken = db.query(HealthWorker).filter(
            HealthWorker.license_number == fields["license_number"]
        ).first()
        if taken:
            raise ValidationError(f"License number {fields['license_number']} is already registered")

        worker = HealthWorker(user_id=user.id, type=self.worker_type, **fields)
        db.add(worker)
        db.flush()
        return worker


class DoctorProfile(HealthWorkerProfile):
    role = UserRole.DOCTOR
    worker_type = HealthWorkerType.DOCTOR
    license_prefix = "DOC"


class VhvProfile(HealthWorkerProfile):
    role = UserRole.VHV
    worker_type = HealthWorkerType.VHV
    license_prefix = "VHV"


class PatientProfile(RoleProfile):
    role = UserRole.PATIENT
    table_name = "patients"

    def default_fields(self, data: UserCreate) -> Dict:
        return {
            "first_name": data.first_name,
            "last_name": data.last_name,
            "dob": data.dob,
            "email": data.email,
            "phone": data.phone_number,
            "address": data.address,
            "national_id": data.national_id,
        }

    def create_record(self, db: Session, user: User, data: UserCreate) -> Patient:
        patient = Patient(user_id=user.id, **self.default_fields(data))
        db.add(patient)
        db.flush()
        return patient


ROLE_PROFILES: Dict[UserRole, RoleProfile] = {
    profile.role: profile
    for profile in (AdminProfile(), DoctorProfile(), VhvProfile(), PatientProfile())
}


def get_role_profile(role: UserRole) -> RoleProfile:
    return ROLE_PROFILES[role]


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


def create_user(db: Session, data: UserCreate) -> Tuple[User, Optional[object]]:
    """Create the login and its role record as one unit.

    The user row is flushed first so the role record can reference it; if the
    role record fails, the whole transaction is rolled back and no orphan
    login is left behind.
    """
    if get_user_by_email(db, data.email):
        raise ValidationError("Email already registered")

    profile = get_role_profile(data.role)
    user = User(
        email=data.email.lower(),
        hashed_password=get_password_hash(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone_number,
        role=data.role,
    )
    db.add(user)
    db.flush()

    try:
        record = profile.create_record(db, user, data)
        db.commit()
    except Exception:
        db.rollback()
        logger.warning(
            "Rolled back user %s after %s insert failed", data.email, profile.table_name
        )
        raise

    db.refresh(user)
    logger.info("Created %s user %s", data.role.value, user.id)
    return user, record


def create_patient_account(db: Session, data: PatientAccountCreate) -> Patient:
    user_data = UserCreate(
        email=data.email,
        password=data.password,
        role=UserRole.PATIENT,
        first_name=data.first_name,
        last_name=data.last_name,
        phone_number=data.phone,
        dob=data.dob,
        address=data.address,
        national_id=data.national_id,
    )
    _, patient = create_user(db, user_data)
    return patient


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def profile_id_for(user: User) -> Optional[int]:
    if user.health_worker is not None:
        return user.health_worker.id
    if user.patient_profile is not None:
        return user.patient_profile.id
    return None


def list_users(db: Session, role: Optional[UserRole] = None) -> List[User]:
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def list_health_workers(db: Session, worker_type: HealthWorkerType) -> List[HealthWorker]:
    return (
        db.query(HealthWorker)
        .options(joinedload(HealthWorker.user))
        .filter(HealthWorker.type == worker_type)
        .order_by(HealthWorker.created_at.desc(), HealthWorker.id.desc())
        .all()
    )


def update_profile(db: Session, user: User, data: UserUpdate) -> User:
    for field, value in data.dict(exclude_unset=True).items():
        if value is not None:
            setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def set_user_active(db: Session, user_id: int, is_active: bool) -> User:
    user = get_user(db, user_id)
    user.is_active = is_active
    if user.health_worker is not None:
        user.health_worker.is_active = is_active
    db.commit()
    db.refresh(user)
    logger.info("User %s %s", user_id, "activated" if is_active else "deactivated")
    return user


def get_admin_stats(db: Session) -> AdminStats:
    def count_role(role: UserRole) -> int:
        return db.query(User).filter(User.role == role).count()

    return AdminStats(
        total_users=db.query(User).count(),
        total_admins=count_role(UserRole.ADMIN),
        total_doctors=db.query(HealthWorker).filter(HealthWorker.type == HealthWorkerType.DOCTOR).count(),
        total_vhvs=db.query(HealthWorker).filter(HealthWorker.type == HealthWorkerType.VHV).count(),
        total_patients=db.query(Patient).count(),
        total_tasks=db.query(Task).count(),
        total_alerts=db.query(EmergencyAlert).count(),
        active_alerts=db.query(EmergencyAlert).filter(
            EmergencyAlert.status == EmergencyStatus.ACTIVE
        ).count(),
        pending_reviews=db.query(IntakeSubmission).filter(
            IntakeSubmission.status == IntakeStatus.SUBMITTED
        ).count(),
    )
