"""Emergency alerts raised for patients and worked by their care team.

Status flow::

    ACTIVE -> ACKNOWLEDGED -> RESOLVED
    ACTIVE | ACKNOWLEDGED -> CANCELLED

Any other move raises ``InvalidTransitionError``. There is no version column;
concurrent updates are last-write-wins.
"""
import logging
from datetime import timedelta
from typing import Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, joinedload

from ..errors import InvalidTransitionError, NotFoundError, ValidationError
from ..models.assignment import Assignment, AssignmentStatus
from ..models.emergency import EmergencyAlert, EmergencyPriority, EmergencyStatus
from ..models.health_worker import HealthWorker, HealthWorkerType
from ..models.user import User, UserRole
from ..schemas.emergency import EmergencyAlertCreate, EmergencyStats
from ..utils.dates import to_naive_utc, utcnow, whole_minutes_between
from .patients import get_active_assignment, get_patient

logger = logging.getLogger(__name__)

OPEN_STATUSES = (EmergencyStatus.ACTIVE, EmergencyStatus.ACKNOWLEDGED)

TIMEFRAMES = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}

def get_alert(db: Session, alert_id: int) -> EmergencyAlert:
    alert = db.get(EmergencyAlert, alert_id)
    if alert is None:
        raise NotFoundError("Emergency alert", alert_id)
    return alert


def create_alert(db: Session, data: EmergencyAlertCreate, triggered_by: Optional[User] = None) -> EmergencyAlert:
    """Open an ACTIVE alert routed to the patient's current care team."""
    patient = get_patient(db, data.patient_id)
    assignment = get_active_assignment(db, patient.id)
    if assignment is None:
        logger.warning("No active assignment for patient %s; alert is unrouted", patient.id)

    alert = EmergencyAlert(
        patient_id=patient.id,
        triggered_by=triggered_by.id if triggered_by else None,
        priority=data.priority,
        status=EmergencyStatus.ACTIVE,
        description=data.description,
        location=data.location,
        assigned_doctor_id=assignment.doctor_id if assignment else None,
        assigned_vhv_id=assignment.vhv_id if assignment else None,
    )
    db.add(alert)
    db.commit()
    db.refresh(alert)
    logger.info("Emergency alert %s (%s) raised for patient %s", alert.id, alert.priority.value, patient.id)
    return alert


def _get_responder(db: Session, user_id: int) -> HealthWorker:
    worker = db.query(HealthWorker).filter(HealthWorker.user_id == user_id).first()
    if worker is None:
        raise ValidationError(f"User {user_id} is not a health worker")
    return worker


def _claim(alert: EmergencyAlert, worker: HealthWorker) -> None:
    if worker.type == HealthWorkerType.DOCTOR:
        alert.assigned_doctor_id = worker.id
    else:
        alert.assigned_vhv_id = worker.id


def _append_note(alert: EmergencyAlert, label: str, notes: Optional[str]) -> None:
    if not notes:
        return
    entry = f"{label}: {notes}"
    alert.description = f"{alert.description}\n\n{entry}" if alert.description else entry


def acknowledge_alert(db: Session, alert_id: int, user_id: int, notes: Optional[str] = None) -> EmergencyAlert:
    alert = get_alert(db, alert_id)
    if alert.status != EmergencyStatus.ACTIVE:
        raise InvalidTransitionError("emergency alert", alert.status, EmergencyStatus.ACKNOWLEDGED)
    worker = _get_responder(db, user_id)

    alert.status = EmergencyStatus.ACKNOWLEDGED
    alert.acknowledged_by = user_id
    alert.acknowledged_at = utcnow()
    _claim(alert, worker)
    _append_note(alert, "Acknowledgement Notes", notes)

    db.commit()
    db.refresh(alert)
    logger.info("Emergency alert %s acknowledged by user %s", alert_id, user_id)
    return alert


def resolve_alert(db: Session, alert_id: int, user_id: int, notes: Optional[str] = None) -> EmergencyAlert:
    alert = get_alert(db, alert_id)
    if alert.status not in OPEN_STATUSES:
        raise InvalidTransitionError("emergency alert", alert.status, EmergencyStatus.RESOLVED)
    worker = _get_responder(db, user_id)

    resolved_at = utcnow()
    alert.status = EmergencyStatus.RESOLVED
    alert.resolved_by = user_id
    alert.resolved_at = resolved_at
    #response time only counts alerts someone acknowledged first
    if alert.acknowledged_at is not None:
        alert.response_time = whole_minutes_between(alert.created_at, resolved_at)
    _claim(alert, worker)
    _append_note(alert, "Resolution Notes", notes)

    db.commit()
    db.refresh(alert)
    logger.info("Emergency alert %s resolved by user %s", alert_id, user_id)
    return alert


def cancel_alert(db: Session, alert_id: int, user_id: int, reason: Optional[str] = None) -> EmergencyAlert:
    alert = get_alert(db, alert_id)
    if alert.status not in OPEN_STATUSES:
        raise InvalidTransitionError("emergency alert", alert.status, EmergencyStatus.CANCELLED)
    if db.get(User, user_id) is None:
        raise ValidationError(f"User {user_id} not found")

    alert.status = EmergencyStatus.CANCELLED
    alert.cancelled_by = user_id
    alert.cancelled_at = utcnow()
    _append_note(alert, "Cancellation Reason", reason)

    db.commit()
    db.refresh(alert)
    logger.info("Emergency alert %s cancelled by user %s", alert_id, user_id)
    return alert


def _patients_of(worker_column, worker_id: int):
    return select(Assignment.patient_id).where(
        worker_column == worker_id,
        Assignment.status == AssignmentStatus.ACTIVE,
    )


def list_alerts(
    db: Session,
    status: Optional[EmergencyStatus] = None,
    priority: Optional[EmergencyPriority] = None,
    patient_id: Optional[int] = None,
    doctor_id: Optional[int] = None,
    vhv_id: Optional[int] = None,
) -> List[EmergencyAlert]:
    query = db.query(EmergencyAlert).options(joinedload(EmergencyAlert.patient))

    if status is not None:
        query = query.filter(EmergencyAlert.status == status)
    if priority is not None:
        query = query.filter(EmergencyAlert.priority == priority)
    if patient_id is not None:
        query = query.filter(EmergencyAlert.patient_id == patient_id)
    if doctor_id is not None:
        query = query.filter(or_(
            EmergencyAlert.assigned_doctor_id == doctor_id,
            EmergencyAlert.patient_id.in_(_patients_of(Assignment.doctor_id, doctor_id)),
        ))
    if vhv_id is not None:
        query = query.filter(or_(
            EmergencyAlert.assigned_vhv_id == vhv_id,
            EmergencyAlert.patient_id.in_(_patients_of(Assignment.vhv_id, vhv_id)),
        ))

    return query.order_by(EmergencyAlert.created_at.desc(), EmergencyAlert.id.desc()).all()


def get_stats(db: Session, timeframe: str = "24h") -> EmergencyStats:
    if timeframe not in TIMEFRAMES:
        raise ValidationError(f"Invalid timeframe: {timeframe}")
    since = to_naive_utc(utcnow() - TIMEFRAMES[timeframe])

    base = db.query(EmergencyAlert).filter(EmergencyAlert.created_at >= since)
    total = base.count()
    active = base.filter(EmergencyAlert.status == EmergencyStatus.ACTIVE).count()
    average = (
        db.query(func.avg(EmergencyAlert.response_time))
        .filter(
            EmergencyAlert.created_at >= since,
            EmergencyAlert.response_time.isnot(None),
        )
        .scalar()
    )

    by_priority: Dict[str, int] = {priority.value: 0 for priority in EmergencyPriority}
    rows = (
        db.query(EmergencyAlert.priority, func.count(EmergencyAlert.id))
        .filter(EmergencyAlert.created_at >= since)
        .group_by(EmergencyAlert.priority)
        .all()
    )
    for priority, count in rows:
        by_priority[priority.value] = count

    return EmergencyStats(
        timeframe=timeframe,
        total_alerts=total,
        active_alerts=active,
        average_response_time=round(float(average), 1) if average is not None else 0.0,
        alerts_by_priority=by_priority,
    )


def active_count(db: Session, user: User) -> int:
    """Open alerts the caller should see: assigned to them, or raised by them."""
    query = db.query(EmergencyAlert).filter(EmergencyAlert.status.in_(OPEN_STATUSES))

    if user.role == UserRole.ADMIN:
        return query.count()
    if user.role == UserRole.PATIENT:
        return query.filter(EmergencyAlert.triggered_by == user.id).count()

    worker = user.health_worker
    if worker is None:
        return 0
    if worker.type == HealthWorkerType.DOCTOR:
        return query.filter(EmergencyAlert.assigned_doctor_id == worker.id).count()
    return query.filter(EmergencyAlert.assigned_vhv_id == worker.id).count()
