from pydantic import EmailStr, Field, validator
from typing import Optional, List
from datetime import date, datetime
from .base import CamelModel, upper_enum_value
from ..models.patient import Gender
from ..utils.validators import SecureTextValidator, optional

#shared patient data + field sanitizing
class PatientBase(CamelModel):
    first_name: str
    last_name: str
    dob: Optional[date] = None
    gender: Optional[Gender] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    national_id: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    medical_history: Optional[str] = None
    allergies: Optional[str] = None

    @validator('first_name', 'last_name')
    def validate_names(cls, v):
        return SecureTextValidator.sanitize_name(v)

    @validator('gender', pre=True)
    def normalize_gender(cls, v):
        return upper_enum_value(v)

    @validator('phone', 'emergency_contact_phone')
    def validate_phones(cls, v):
        return optional(SecureTextValidator.validate_phone_field, v)

    @validator('emergency_contact_name')
    def validate_emergency_name(cls, v):
        return optional(SecureTextValidator.sanitize_name, v)

    @validator('medical_history', 'allergies', 'address')
    def validate_text_fields(cls, v):
        return optional(SecureTextValidator.sanitize_notes, v)

#patient record without a login (staff-entered)
class PatientCreate(PatientBase):
    user_id: Optional[int] = None

#safe partial updates
class PatientUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    dob: Optional[date] = None
    gender: Optional[Gender] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    national_id: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    medical_history: Optional[str] = None
    allergies: Optional[str] = None

    @validator('first_name', 'last_name', 'emergency_contact_name')
    def validate_names(cls, v):
        return optional(SecureTextValidator.sanitize_name, v)

    @validator('gender', pre=True)
    def normalize_gender(cls, v):
        return upper_enum_value(v)

    @validator('phone', 'emergency_contact_phone')
    def validate_phones(cls, v):
        return optional(SecureTextValidator.validate_phone_field, v)

    @validator('medical_history', 'allergies', 'address')
    def validate_text_fields(cls, v):
        return optional(SecureTextValidator.sanitize_notes, v)

#patient record plus login account in one call
class PatientAccountCreate(CamelModel):
    first_name: str
    last_name: str
    dob: date
    email: EmailStr
    password: str
    address: Optional[str] = None
    phone: Optional[str] = None
    national_id: Optional[str] = None

    @validator('first_name', 'last_name')
    def validate_names(cls, v):
        return SecureTextValidator.sanitize_name(v)

    @validator('password')
    def validate_password(cls, v):
        return SecureTextValidator.validate_password_strength(v)

    @validator('phone')
    def validate_phone(cls, v):
        return optional(SecureTextValidator.validate_phone_field, v)

#standard API output
class PatientResponse(CamelModel):
    id: int
    user_id: Optional[int] = None
    first_name: str
    last_name: str
    full_name: str = Field(alias="name")
    dob: Optional[date] = None
    gender: Optional[Gender] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    national_id: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    medical_history: Optional[str] = None
    allergies: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PatientAccountResponse(CamelModel):
    success: bool = True
    patient: PatientResponse

#compact form embedded in queues and alerts
class PatientBrief(CamelModel):
    id: int
    first_name: str
    last_name: str
    dob: Optional[date] = None
    phone: Optional[str] = None

class PatientListResponse(CamelModel):
    patients: List[PatientResponse]
    total: int
    page: int
    per_page: int
