import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..errors import NotFoundError, ValidationError
from ..models.patient_records import (
    Appointment, AppointmentStatus, Medication, RescheduleRequest, RescheduleStatus,
    Visit, VitalSign,
)
from ..models.user import User
from ..schemas.patient_records import AppointmentCreate, RescheduleCreate, VitalSignCreate
from .patients import get_patient

logger = logging.getLogger(__name__)


def list_appointments(db: Session, patient_id: int) -> List[Appointment]:
    return (
        db.query(Appointment)
        .filter(Appointment.patient_id == patient_id)
        .order_by(Appointment.scheduled_date.asc(), Appointment.scheduled_time.asc())
        .all()
    )


def create_appointment(db: Session, data: AppointmentCreate) -> Appointment:
    get_patient(db, data.patient_id)
    appointment = Appointment(**data.dict(), status=AppointmentStatus.SCHEDULED)
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def list_visits(db: Session, patient_id: int) -> List[Visit]:
    return (
        db.query(Visit)
        .filter(Visit.patient_id == patient_id)
        .order_by(Visit.visit_date.desc(), Visit.id.desc())
        .all()
    )


def list_active_medications(db: Session, patient_id: int) -> List[Medication]:
    return (
        db.query(Medication)
        .filter(Medication.patient_id == patient_id, Medication.is_active.is_(True))
        .order_by(Medication.prescribed_date.desc(), Medication.id.desc())
        .all()
    )


def list_vital_signs(db: Session, patient_id: int, limit: Optional[int] = None) -> List[VitalSign]:
    query = (
        db.query(VitalSign)
        .filter(VitalSign.patient_id == patient_id)
        .order_by(VitalSign.recorded_date.desc(), VitalSign.id.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def record_vital_sign(db: Session, data: VitalSignCreate, recorded_by: Optional[User] = None) -> VitalSign:
    get_patient(db, data.patient_id)
    vital = VitalSign(**data.dict(), recorded_by=recorded_by.id if recorded_by else None)
    db.add(vital)
    db.commit()
    db.refresh(vital)
    return vital


def request_reschedule(db: Session, data: RescheduleCreate) -> RescheduleRequest:
    """File (or replace) the reschedule request of an appointment and move it."""
    appointment = db.get(Appointment, data.appointment_id)
    if appointment is None:
        raise NotFoundError("Appointment", data.appointment_id)
    if appointment.patient_id != data.patient_id:
        raise ValidationError(
            f"Appointment {data.appointment_id} does not belong to patient {data.patient_id}"
        )

    request = db.query(RescheduleRequest).filter(
        RescheduleRequest.appointment_id == appointment.id
    ).first()
    if request is None:
        request = RescheduleRequest(appointment_id=appointment.id, patient_id=data.patient_id)
        db.add(request)

    request.requested_date = data.requested_date
    request.requested_time = data.requested_time
    request.reason = data.reason
    request.preferred_alternatives = data.preferred_alternatives
    request.status = RescheduleStatus.PENDING
    request.reviewed_by = None
    request.reviewed_at = None

    appointment.scheduled_date = data.requested_date
    appointment.scheduled_time = data.requested_time
    appointment.status = AppointmentStatus.RESCHEDULED

    db.commit()
    db.refresh(request)
    logger.info("Appointment %s rescheduled to %s %s", appointment.id, data.requested_date, data.requested_time)
    return request
