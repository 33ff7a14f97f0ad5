from pydantic import Field, validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from .base import CamelModel, upper_enum_value
from .patient import PatientBrief
from .user import WorkerBrief
from ..models.intake import IntakeStatus, ReviewActionType

#Nested sections of an intake payload. Every field is optional because
#drafts are saved partially filled.

class VisitMeta(CamelModel):
    visit_date_time: Optional[datetime] = None
    vhv_id: Optional[int] = None
    location_text: Optional[str] = ""

class PatientBasics(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    dob: Optional[str] = None
    contact_phone: Optional[str] = None

class Symptoms(CamelModel):
    chief_complaint: Optional[str] = None
    checklist: List[str] = []
    onset_days: Optional[int] = None

    @validator('onset_days')
    def validate_onset(cls, v):
        if v is not None and v < 0:
            raise ValueError('onsetDays cannot be negative')
        return v

#plausible ranges; anything outside is a data entry error
VITAL_RANGES = {
    "temp": (30.0, 45.0),
    "systolic": (50, 260),
    "diastolic": (30, 160),
    "hr": (20, 250),
}

def _check_range(name: str, value):
    if value is None:
        return value
    low, high = VITAL_RANGES[name]
    if not low <= value <= high:
        raise ValueError(f'{name} must be between {low} and {high}')
    return value

class Vitals(CamelModel):
    temp: Optional[float] = None
    systolic: Optional[int] = None
    diastolic: Optional[int] = None
    hr: Optional[int] = None

    @validator('temp')
    def validate_temp(cls, v):
        return _check_range('temp', v)

    @validator('systolic')
    def validate_systolic(cls, v):
        return _check_range('systolic', v)

    @validator('diastolic')
    def validate_diastolic(cls, v):
        return _check_range('diastolic', v)

    @validator('hr')
    def validate_hr(cls, v):
        return _check_range('hr', v)

class ChronicCondition(CamelModel):
    condition: str
    free_text: Optional[str] = None

class ChronicConditions(CamelModel):
    conditions: List[ChronicCondition] = Field(default=[], alias="list")

class RiskFlags(CamelModel):
    is_age60_plus: bool = False
    is_pregnant: bool = False
    has_chronic: bool = False

class Consent(CamelModel):
    consent_given: bool = False

class IntakePayload(CamelModel):
    visit_meta: Optional[VisitMeta] = None
    patient_basics: Optional[PatientBasics] = None
    symptoms: Optional[Symptoms] = None
    vitals: Optional[Vitals] = None
    chronic_conditions: Optional[ChronicConditions] = None
    risk_flags: Optional[RiskFlags] = None
    consent: Optional[Consent] = None

    #unknown sections are kept as sent
    class Config:
        extra = "allow"


class IntakeCreate(CamelModel):
    patient_id: int
    vhv_id: Optional[int] = None

#PUT /api/intakes: id plus the fields to change
class IntakeUpdate(CamelModel):
    id: int
    payload: Optional[Dict[str, Any]] = None
    attachments: Optional[List[Any]] = None
    status: Optional[IntakeStatus] = None

    @validator('status', pre=True)
    def normalize_status(cls, v):
        return upper_enum_value(v)

class ReviewActionResponse(CamelModel):
    id: int
    submission_id: int
    reviewer_id: int
    action: ReviewActionType
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

class IntakeResponse(CamelModel):
    id: int
    patient_id: int
    vhv_id: Optional[int] = None
    status: IntakeStatus
    payload: Dict[str, Any] = {}
    attachments: List[Any] = []
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

#single intake with its review history
class IntakeDetail(IntakeResponse):
    review_actions: List[ReviewActionResponse] = []

#review queue row with patient and VHV summaries
class ReviewQueueItem(IntakeResponse):
    patient: Optional[PatientBrief] = None
    vhv: Optional[WorkerBrief] = None

    @classmethod
    def from_intake(cls, intake) -> "ReviewQueueItem":
        base = IntakeResponse.model_validate(intake).model_dump()
        return cls(
            **base,
            patient=PatientBrief.model_validate(intake.patient) if intake.patient else None,
            vhv=WorkerBrief.from_worker(intake.vhv),
        )
