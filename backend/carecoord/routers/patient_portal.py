from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import List

from ..database import get_db
from ..models.audit_log import AuditAction, AuditEntityType
from ..models.user import User
from ..schemas.patient_records import (
    AppointmentCreate, AppointmentResponse, MedicationResponse, RescheduleCreate,
    RescheduleResponse, VisitResponse, VitalSignCreate, VitalSignResponse,
)
from ..services import patient_records as records_service
from ..services.patients import check_patient_access
from ..utils.audit import get_audit_logger
from ..utils.deps import get_current_active_user, require_staff

router = APIRouter(prefix="/api/patient", tags=["patient-portal"])

@router.get("/appointments", response_model=List[AppointmentResponse])
async def get_appointments(
    patient_id: int = Query(..., alias="patientId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Appointments of a patient, soonest first."""
    check_patient_access(current_user, patient_id)
    return records_service.list_appointments(db, patient_id)

@router.post("/appointments", response_model=AppointmentResponse)
async def create_appointment(
    appointment_data: AppointmentCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Book an appointment."""
    appointment = records_service.create_appointment(db, appointment_data)

    get_audit_logger(db).log_action(
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.APPOINTMENT,
        entity_id=appointment.id,
        patient_id=appointment.patient_id,
        user=current_user,
        description=f"Booked appointment on {appointment.scheduled_date} {appointment.scheduled_time}",
        request=request,
    )
    return appointment

@router.get("/visits", response_model=List[VisitResponse])
async def get_visits(
    patient_id: int = Query(..., alias="patientId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Past visits, most recent first."""
    check_patient_access(current_user, patient_id)
    return records_service.list_visits(db, patient_id)

@router.get("/medications", response_model=List[MedicationResponse])
async def get_medications(
    patient_id: int = Query(..., alias="patientId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Active medications."""
    check_patient_access(current_user, patient_id)
    return records_service.list_active_medications(db, patient_id)

@router.get("/vital-signs", response_model=List[VitalSignResponse])
async def get_vital_signs(
    patient_id: int = Query(..., alias="patientId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Vital sign readings, most recent first."""
    check_patient_access(current_user, patient_id)
    return records_service.list_vital_signs(db, patient_id)

@router.post("/vital-signs", response_model=VitalSignResponse)
async def record_vital_sign(
    vital_data: VitalSignCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Record a vital sign reading."""
    check_patient_access(current_user, vital_data.patient_id)
    return records_service.record_vital_sign(db, vital_data, recorded_by=current_user)

#one request per appointment; a second request replaces the first
@router.post("/reschedule", response_model=RescheduleResponse)
async def request_reschedule(
    reschedule_data: RescheduleCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Move an appointment to a new date and time."""
    check_patient_access(current_user, reschedule_data.patient_id)
    reschedule = records_service.request_reschedule(db, reschedule_data)

    get_audit_logger(db).log_action(
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.APPOINTMENT,
        entity_id=reschedule.appointment_id,
        patient_id=reschedule.patient_id,
        user=current_user,
        description=(
            f"Rescheduled appointment {reschedule.appointment_id} to "
            f"{reschedule.requested_date} {reschedule.requested_time}"
        ),
        request=request,
    )
    return reschedule
