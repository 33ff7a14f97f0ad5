from typing import Optional, List
from .base import CamelModel
from .assignment import AssignmentDetail
from .task import TaskResponse
from .intake import IntakeResponse, ReviewQueueItem
from .emergency import EmergencyAlertResponse
from .patient import PatientResponse
from .patient_records import AppointmentResponse, MedicationResponse, VitalSignResponse


class DoctorDashboard(CamelModel):
    doctor_id: int
    total_assignments: int
    open_tasks: int
    pending_reviews: int
    active_alerts: int
    assignments: List[AssignmentDetail] = []
    review_queue: List[ReviewQueueItem] = []
    alerts: List[EmergencyAlertResponse] = []
    poll_interval_seconds: int

class VhvDashboard(CamelModel):
    vhv_id: int
    total_assignments: int
    open_tasks: int
    drafts: int
    changes_requested: int
    active_alerts: int
    assignments: List[AssignmentDetail] = []
    tasks: List[TaskResponse] = []
    returned_intakes: List[IntakeResponse] = []
    alerts: List[EmergencyAlertResponse] = []
    poll_interval_seconds: int

class PatientDashboard(CamelModel):
    patient: PatientResponse
    upcoming_appointments: List[AppointmentResponse] = []
    active_medications: List[MedicationResponse] = []
    latest_vitals: Optional[VitalSignResponse] = None
    active_alerts: List[EmergencyAlertResponse] = []
    poll_interval_seconds: int
