from pydantic import validator
from typing import Optional, List
from datetime import datetime
from .base import CamelModel, upper_enum_value
from .patient import PatientBrief
from .user import WorkerBrief
from .task import TaskResponse
from .intake import IntakeResponse
from ..models.assignment import AssignmentStatus
from ..models.task import TaskPriority
from ..utils.validators import SecureTextValidator, optional

#task created together with an assignment; patient/VHV/doctor come from the assignment
class AssignmentTaskCreate(CamelModel):
    title: str
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None

    @validator('title')
    def validate_title(cls, v):
        v = SecureTextValidator.sanitize_notes(v)
        if not v:
            raise ValueError('Title cannot be empty')
        return v[:200]

    @validator('description')
    def validate_description(cls, v):
        return optional(SecureTextValidator.sanitize_notes, v)

    @validator('priority', pre=True)
    def normalize_priority(cls, v):
        return upper_enum_value(v)

class AssignPatientRequest(CamelModel):
    patient_id: int
    vhv_id: int
    doctor_id: int
    tasks: List[AssignmentTaskCreate] = []

class AssignmentStatusUpdate(CamelModel):
    status: AssignmentStatus

    @validator('status', pre=True)
    def normalize_status(cls, v):
        return upper_enum_value(v)

class AssignmentResponse(CamelModel):
    id: int
    patient_id: int
    vhv_id: int
    doctor_id: int
    status: AssignmentStatus
    assigned_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

#result of POST /api/patients/assign
class AssignPatientResponse(CamelModel):
    assignment: AssignmentResponse
    tasks: List[TaskResponse] = []

#assignment with the related records joined in
class AssignmentDetail(AssignmentResponse):
    patient: Optional[PatientBrief] = None
    vhv: Optional[WorkerBrief] = None
    doctor: Optional[WorkerBrief] = None
    tasks: List[TaskResponse] = []
    intakes: List[IntakeResponse] = []
