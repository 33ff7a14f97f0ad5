from pydantic import validator
from typing import Optional
from datetime import date, datetime
import re
from .base import CamelModel
from ..models.patient_records import AppointmentStatus, VisitStatus, RescheduleStatus
from ..utils.validators import SecureTextValidator, optional

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_time_of_day(value: str) -> str:
    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be HH:MM")
    return value


class AppointmentCreate(CamelModel):
    patient_id: int
    doctor_id: Optional[int] = None
    provider_name: Optional[str] = None
    appointment_type: str = "Consultation"
    scheduled_date: date
    scheduled_time: str
    location: Optional[str] = None
    notes: Optional[str] = None

    @validator('scheduled_time')
    def validate_time(cls, v):
        return validate_time_of_day(v)

    @validator('notes')
    def validate_notes(cls, v):
        return optional(SecureTextValidator.sanitize_notes, v)

class AppointmentResponse(CamelModel):
    id: int
    patient_id: int
    doctor_id: Optional[int] = None
    provider_name: Optional[str] = None
    appointment_type: Optional[str] = None
    scheduled_date: date
    scheduled_time: str
    location: Optional[str] = None
    status: AppointmentStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class VisitResponse(CamelModel):
    id: int
    patient_id: int
    doctor_id: Optional[int] = None
    provider_name: Optional[str] = None
    visit_date: date
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    notes: Optional[str] = None
    status: VisitStatus
    created_at: Optional[datetime] = None

class MedicationResponse(CamelModel):
    id: int
    patient_id: int
    name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    prescribed_by: Optional[str] = None
    prescribed_date: Optional[date] = None
    remaining_days: Optional[int] = 0
    is_active: bool = True
    notes: Optional[str] = None

class VitalSignCreate(CamelModel):
    patient_id: int
    temperature: Optional[float] = None
    blood_pressure_systolic: Optional[int] = None
    blood_pressure_diastolic: Optional[int] = None
    heart_rate: Optional[int] = None
    weight: Optional[float] = None
    height: Optional[float] = None
    notes: Optional[str] = None

    @validator('temperature')
    def validate_temperature(cls, v):
        if v is not None and not 30.0 <= v <= 45.0:
            raise ValueError('temperature must be between 30 and 45')
        return v

    @validator('heart_rate')
    def validate_heart_rate(cls, v):
        if v is not None and not 20 <= v <= 250:
            raise ValueError('heartRate must be between 20 and 250')
        return v

    @validator('weight', 'height')
    def validate_positive(cls, v):
        if v is not None and v <= 0:
            raise ValueError('must be positive')
        return v

    @validator('notes')
    def validate_notes(cls, v):
        return optional(SecureTextValidator.sanitize_notes, v)

class VitalSignResponse(CamelModel):
    id: int
    patient_id: int
    recorded_date: Optional[datetime] = None
    temperature: Optional[float] = None
    blood_pressure_systolic: Optional[int] = None
    blood_pressure_diastolic: Optional[int] = None
    heart_rate: Optional[int] = None
    weight: Optional[float] = None
    height: Optional[float] = None
    notes: Optional[str] = None
    recorded_by: Optional[int] = None

class RescheduleCreate(CamelModel):
    appointment_id: int
    patient_id: int
    requested_date: date
    requested_time: str
    reason: Optional[str] = None
    preferred_alternatives: Optional[str] = None

    @validator('requested_time')
    def validate_time(cls, v):
        return validate_time_of_day(v)

    @validator('reason', 'preferred_alternatives')
    def validate_text(cls, v):
        return optional(SecureTextValidator.sanitize_notes, v)

class RescheduleResponse(CamelModel):
    id: int
    appointment_id: int
    patient_id: int
    requested_date: date
    requested_time: str
    reason: Optional[str] = None
    preferred_alternatives: Optional[str] = None
    status: RescheduleStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
