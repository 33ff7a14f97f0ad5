from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import NotFoundError
from ..models.assignment import Assignment
from ..models.emergency import EmergencyAlert
from ..models.health_worker import HealthWorker, HealthWorkerType
from ..models.intake import IntakeStatus, IntakeSubmission
from ..models.patient_records import Appointment, AppointmentStatus
from ..models.task import Task, TaskStatus
from ..models.user import User
from ..schemas.dashboard import DoctorDashboard, PatientDashboard, VhvDashboard
from ..schemas.emergency import EmergencyAlertResponse
from ..schemas.intake import IntakeResponse, ReviewQueueItem
from ..schemas.patient import PatientResponse
from ..schemas.patient_records import AppointmentResponse, MedicationResponse, VitalSignResponse
from ..schemas.task import TaskResponse
from .emergency import OPEN_STATUSES
from .patient_records import list_active_medications, list_vital_signs
from .patients import list_doctor_assignments, list_vhv_assignments

OPEN_TASK_STATUSES = (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)
UPCOMING_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.RESCHEDULED)


def _worker_for(user: User, worker_type: HealthWorkerType) -> HealthWorker:
    worker = user.health_worker
    if worker is None or worker.type != worker_type:
        label = "Doctor" if worker_type == HealthWorkerType.DOCTOR else "VHV"
        raise NotFoundError(f"{label} profile for user", user.id)
    return worker


def _open_alerts(db: Session, *criteria):
    return (
        db.query(EmergencyAlert)
        .filter(EmergencyAlert.status.in_(OPEN_STATUSES), *criteria)
        .order_by(EmergencyAlert.created_at.desc(), EmergencyAlert.id.desc())
        .all()
    )


def doctor_dashboard(db: Session, user: User) -> DoctorDashboard:
    doctor = _worker_for(user, HealthWorkerType.DOCTOR)
    assignments = list_doctor_assignments(db, doctor.id)

    supervised = select(Assignment.patient_id).where(Assignment.doctor_id == doctor.id)
    queue = (
        db.query(IntakeSubmission)
        .filter(
            IntakeSubmission.status == IntakeStatus.SUBMITTED,
            IntakeSubmission.patient_id.in_(supervised),
        )
        .order_by(IntakeSubmission.created_at.desc(), IntakeSubmission.id.desc())
        .all()
    )
    open_tasks = db.query(Task).filter(
        Task.doctor_id == doctor.id, Task.status.in_(OPEN_TASK_STATUSES)
    ).count()
    alerts = _open_alerts(db, EmergencyAlert.assigned_doctor_id == doctor.id)

    return DoctorDashboard(
        doctor_id=doctor.id,
        total_assignments=len(assignments),
        open_tasks=open_tasks,
        pending_reviews=len(queue),
        active_alerts=len(alerts),
        assignments=assignments,
        review_queue=[ReviewQueueItem.from_intake(intake) for intake in queue],
        alerts=[EmergencyAlertResponse.model_validate(alert) for alert in alerts],
        poll_interval_seconds=settings.emergency_poll_seconds,
    )


def vhv_dashboard(db: Session, user: User) -> VhvDashboard:
    vhv = _worker_for(user, HealthWorkerType.VHV)
    assignments = list_vhv_assignments(db, vhv.id)

    tasks = (
        db.query(Task)
        .filter(Task.vhv_id == vhv.id, Task.status.in_(OPEN_TASK_STATUSES))
        .order_by(Task.due_date.asc().nulls_last(), Task.id.asc())
        .all()
    )
    intakes = db.query(IntakeSubmission).filter(IntakeSubmission.vhv_id == vhv.id)
    drafts = intakes.filter(IntakeSubmission.status == IntakeStatus.DRAFT).count()
    returned = (
        intakes.filter(IntakeSubmission.status == IntakeStatus.CHANGES_REQUESTED)
        .order_by(IntakeSubmission.reviewed_at.desc(), IntakeSubmission.id.desc())
        .all()
    )
    alerts = _open_alerts(db, EmergencyAlert.assigned_vhv_id == vhv.id)

    return VhvDashboard(
        vhv_id=vhv.id,
        total_assignments=len(assignments),
        open_tasks=len(tasks),
        drafts=drafts,
        changes_requested=len(returned),
        active_alerts=len(alerts),
        assignments=assignments,
        tasks=[TaskResponse.model_validate(task) for task in tasks],
        returned_intakes=[IntakeResponse.model_validate(intake) for intake in returned],
        alerts=[EmergencyAlertResponse.model_validate(alert) for alert in alerts],
        poll_interval_seconds=settings.emergency_poll_seconds,
    )


def patient_dashboard(db: Session, user: User) -> PatientDashboard:
    patient = user.patient_profile
    if patient is None:
        raise NotFoundError("Patient profile for user", user.id)

    upcoming = (
        db.query(Appointment)
        .filter(
            Appointment.patient_id == patient.id,
            Appointment.status.in_(UPCOMING_STATUSES),
            Appointment.scheduled_date >= date.today(),
        )
        .order_by(Appointment.scheduled_date.asc(), Appointment.scheduled_time.asc())
        .all()
    )
    latest = list_vital_signs(db, patient.id, limit=1)
    alerts = _open_alerts(db, EmergencyAlert.patient_id == patient.id)

    return PatientDashboard(
        patient=PatientResponse.model_validate(patient),
        upcoming_appointments=[AppointmentResponse.model_validate(a) for a in upcoming],
        active_medications=[MedicationResponse.model_validate(m) for m in list_active_medications(db, patient.id)],
        latest_vitals=VitalSignResponse.model_validate(latest[0]) if latest else None,
        active_alerts=[EmergencyAlertResponse.model_validate(alert) for alert in alerts],
        poll_interval_seconds=settings.emergency_poll_seconds,
    )
