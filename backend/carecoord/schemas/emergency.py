from pydantic import Field, validator
from typing import Optional, Dict
from datetime import datetime
import enum
from .base import CamelModel, upper_enum_value
from ..models.emergency import EmergencyPriority, EmergencyStatus
from ..utils.validators import SecureTextValidator, optional


class EmergencyAlertCreate(CamelModel):
    patient_id: int
    priority: EmergencyPriority
    description: Optional[str] = None
    location: Optional[str] = None

    @validator('priority', pre=True)
    def normalize_priority(cls, v):
        return upper_enum_value(v)

    @validator('description', 'location')
    def validate_text(cls, v):
        return optional(SecureTextValidator.sanitize_notes, v)

#PATCH /api/emergency/{id} actions
class EmergencyAction(enum.Enum):
    ACKNOWLEDGE = "acknowledge"
    RESOLVE = "resolve"
    CANCEL = "cancel"

class EmergencyAlertAction(CamelModel):
    action: EmergencyAction
    user_id: int
    notes: Optional[str] = None

    @validator('action', pre=True)
    def normalize_action(cls, v):
        return v.lower() if isinstance(v, str) else v

    @validator('notes')
    def validate_notes(cls, v):
        return optional(SecureTextValidator.sanitize_notes, v)

class EmergencyAlertResponse(CamelModel):
    id: int
    patient_id: int
    patient_name: str = ""
    triggered_by: Optional[int] = None
    priority: EmergencyPriority
    status: EmergencyStatus
    description: Optional[str] = None
    location: Optional[str] = None
    assigned_doctor_id: Optional[int] = None
    assigned_vhv_id: Optional[int] = Field(default=None, alias="assignedVHVId")
    acknowledged_by: Optional[int] = None
    acknowledged_at: Optional[datetime] = None
    resolved_by: Optional[int] = None
    resolved_at: Optional[datetime] = None
    cancelled_by: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    #whole minutes from creation to resolution
    response_time: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class EmergencyStats(CamelModel):
    timeframe: str
    total_alerts: int
    active_alerts: int
    average_response_time: float
    alerts_by_priority: Dict[str, int]

class ActiveAlertCount(CamelModel):
    count: int
    poll_interval_seconds: int
