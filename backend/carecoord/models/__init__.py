#used to control how models are exposed when the package is imported.
from .user import User, UserRole
from .health_worker import HealthWorker, HealthWorkerType
from .patient import Patient, Gender
from .assignment import Assignment, AssignmentStatus
from .task import Task, TaskPriority, TaskStatus
from .intake import IntakeSubmission, IntakeStatus, ReviewAction, ReviewActionType
from .emergency import EmergencyAlert, EmergencyPriority, EmergencyStatus
from .patient_records import (
    Appointment, AppointmentStatus, Visit, VisitStatus, Medication, VitalSign,
    RescheduleRequest, RescheduleStatus,
)
from .audit_log import AuditLog, AuditAction, AuditEntityType
from .session import AuthSession

#all public models
__all__ = [
    "User", "UserRole",
    "HealthWorker", "HealthWorkerType",
    "Patient", "Gender",
    "Assignment", "AssignmentStatus",
    "Task", "TaskPriority", "TaskStatus",
    "IntakeSubmission", "IntakeStatus", "ReviewAction", "ReviewActionType",
    "EmergencyAlert", "EmergencyPriority", "EmergencyStatus",
    "Appointment", "AppointmentStatus", "Visit", "VisitStatus", "Medication",
    "VitalSign", "RescheduleRequest", "RescheduleStatus",
    "AuditLog", "AuditAction", "AuditEntityType",
    "AuthSession",
]
