from pydantic import EmailStr, Field, validator
from typing import Optional
from datetime import date, datetime
from .base import CamelModel, upper_enum_value
from ..models.user import UserRole #role-based access control
from ..models.health_worker import HealthWorkerType
from ..utils.validators import SecureTextValidator, optional

#Request body for POST /api/admin/create-user; role-specific fields are optional
class UserCreate(CamelModel):
    email: EmailStr
    password: str
    role: UserRole
    first_name: str
    last_name: str
    phone_number: Optional[str] = None

    # DOCTOR / VHV profile
    license_number: Optional[str] = None
    specialization: Optional[str] = None
    hospital_affiliation: Optional[str] = None
    region: Optional[str] = None
    training_level: Optional[str] = None

    # PATIENT profile
    dob: Optional[date] = None
    address: Optional[str] = None
    national_id: Optional[str] = None

    @validator('role', pre=True)
    def normalize_role(cls, v):
        return upper_enum_value(v)

    @validator('first_name', 'last_name')
    def validate_names(cls, v):
        return SecureTextValidator.sanitize_name(v)

    @validator('password')
    def validate_password(cls, v):
        return SecureTextValidator.validate_password_strength(v)

    @validator('phone_number')
    def validate_phone(cls, v):
        return optional(SecureTextValidator.validate_phone_field, v)

#partial updates of one's own profile
class UserUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

    @validator('first_name', 'last_name')
    def validate_names(cls, v):
        return optional(SecureTextValidator.sanitize_name, v)

    @validator('phone')
    def validate_phone(cls, v):
        return optional(SecureTextValidator.validate_phone_field, v)

class UserStatusUpdate(CamelModel):
    is_active: bool

#API output schema
class UserResponse(CamelModel):
    id: int
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: UserRole
    is_active: bool
    created_at: Optional[datetime] = None

#Flat row used by the admin listings
class UserSummary(CamelModel):
    id: int
    email: str
    role: UserRole
    first_name: str
    last_name: str
    name: str
    status: str
    phone: Optional[str] = None
    #id of the role record (health worker or patient), if any
    profile_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user, profile_id: Optional[int] = None) -> "UserSummary":
        return cls(
            id=user.id,
            email=user.email,
            role=user.role,
            first_name=user.first_name,
            last_name=user.last_name,
            name=user.full_name,
            status="active" if user.is_active else "inactive",
            phone=user.phone,
            profile_id=profile_id,
            created_at=user.created_at,
        )

class HealthWorkerResponse(CamelModel):
    id: int
    user_id: int
    type: HealthWorkerType
    email: str
    first_name: str
    last_name: str
    name: str
    status: str
    phone: Optional[str] = None
    license_number: str
    specialization: Optional[str] = None
    hospital_affiliation: Optional[str] = None
    region: Optional[str] = None
    training_level: Optional[str] = None
    experience_years: Optional[int] = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_worker(cls, worker) -> "HealthWorkerResponse":
        user = worker.user
        return cls(
            id=worker.id,
            user_id=worker.user_id,
            type=worker.type,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            name=user.full_name,
            status="active" if (worker.is_active and user.is_active) else "inactive",
            phone=user.phone,
            license_number=worker.license_number,
            specialization=worker.specialization,
            hospital_affiliation=worker.hospital_affiliation,
            region=worker.region,
            training_level=worker.training_level,
            experience_years=worker.experience_years,
            created_at=worker.created_at,
        )

#Counts for the admin dashboard
class AdminStats(CamelModel):
    total_users: int
    total_admins: int
    total_doctors: int
    total_vhvs: int = Field(alias="totalVHVs")
    total_patients: int
    total_tasks: int
    total_alerts: int
    active_alerts: int
    pending_reviews: int

#health worker as embedded in assignments, queues and alerts
class WorkerBrief(CamelModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    license_number: Optional[str] = None

    @classmethod
    def from_worker(cls, worker) -> Optional["WorkerBrief"]:
        if worker is None:
            return None
        return cls(
            id=worker.id,
            name=worker.full_name,
            email=worker.user.email,
            phone=worker.user.phone,
            license_number=worker.license_number,
        )
