from pydantic import validator
from typing import Optional
from datetime import datetime
from .base import CamelModel, upper_enum_value
from ..models.task import TaskPriority, TaskStatus
from ..utils.validators import SecureTextValidator, optional


def clean_title(v):
    v = SecureTextValidator.sanitize_notes(v)
    if not v:
        raise ValueError('Title cannot be empty')
    return v[:200]


class TaskCreate(CamelModel):
    title: str
    description: Optional[str] = None
    patient_id: int
    vhv_id: int
    doctor_id: int
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None

    @validator('title')
    def validate_title(cls, v):
        return clean_title(v)

    @validator('description')
    def validate_description(cls, v):
        return optional(SecureTextValidator.sanitize_notes, v)

    @validator('priority', pre=True)
    def normalize_priority(cls, v):
        return upper_enum_value(v)

#PUT /api/tasks carries the id in the body
class TaskUpdate(CamelModel):
    id: int
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None

    @validator('title')
    def validate_title(cls, v):
        return v if v is None else clean_title(v)

    @validator('description')
    def validate_description(cls, v):
        return optional(SecureTextValidator.sanitize_notes, v)

    @validator('priority', 'status', pre=True)
    def normalize_enums(cls, v):
        return upper_enum_value(v)

class TaskResponse(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    patient_id: int
    vhv_id: int
    doctor_id: int
    priority: TaskPriority
    status: TaskStatus
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class TaskDeleteResponse(CamelModel):
    success: bool = True
    id: int
