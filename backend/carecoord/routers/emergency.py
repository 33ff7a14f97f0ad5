from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import List, Optional

from ..config import settings
from ..database import get_db
from ..errors import PermissionDeniedError
from ..models.audit_log import AuditAction, AuditEntityType
from ..models.emergency import EmergencyPriority, EmergencyStatus
from ..models.user import User, UserRole
from ..schemas.emergency import (
    ActiveAlertCount, EmergencyAction, EmergencyAlertAction, EmergencyAlertCreate,
    EmergencyAlertResponse, EmergencyStats,
)
from ..services import emergency as emergency_service
from ..services.patients import check_patient_access
from ..utils.audit import get_audit_logger
from ..utils.deps import get_current_active_user, require_staff
from ..utils.params import parse_enum

router = APIRouter(prefix="/api/emergency", tags=["emergency"])

ACTION_HANDLERS = {
    EmergencyAction.ACKNOWLEDGE: (emergency_service.acknowledge_alert, AuditAction.ACKNOWLEDGE),
    EmergencyAction.RESOLVE: (emergency_service.resolve_alert, AuditAction.RESOLVE),
    EmergencyAction.CANCEL: (emergency_service.cancel_alert, AuditAction.CANCEL),
}

#Raise an alert; routed to the patient's active care team
@router.post("", response_model=EmergencyAlertResponse)
async def create_alert(
    alert_data: EmergencyAlertCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Create an emergency alert."""
    check_patient_access(current_user, alert_data.patient_id)
    alert = emergency_service.create_alert(db, alert_data, triggered_by=current_user)

    get_audit_logger(db).log_action(
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.EMERGENCY_ALERT,
        entity_id=alert.id,
        patient_id=alert.patient_id,
        user=current_user,
        description=f"{alert.priority.value} emergency alert raised",
        request=request,
    )
    return alert

@router.get("", response_model=List[EmergencyAlertResponse])
async def get_alerts(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    patient_id: Optional[int] = Query(None, alias="patientId"),
    doctor_id: Optional[int] = Query(None, alias="doctorId"),
    vhv_id: Optional[int] = Query(None, alias="vhvId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """List alerts, newest first."""
    #patients are pinned to their own record
    if current_user.role == UserRole.PATIENT:
        profile = current_user.patient_profile
        patient_id = profile.id if profile else -1
        doctor_id = vhv_id = None

    return emergency_service.list_alerts(
        db,
        status=parse_enum(EmergencyStatus, status, "status"),
        priority=parse_enum(EmergencyPriority, priority, "priority"),
        patient_id=patient_id,
        doctor_id=doctor_id,
        vhv_id=vhv_id,
    )

@router.get("/stats", response_model=EmergencyStats)
async def get_stats(
    timeframe: str = "24h",
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Alert counts and average response time over 24h, 7d or 30d."""
    return emergency_service.get_stats(db, timeframe)

#Polled by clients every few seconds
@router.get("/active-count", response_model=ActiveAlertCount)
async def get_active_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Open alerts relevant to the caller."""
    return ActiveAlertCount(
        count=emergency_service.active_count(db, current_user),
        poll_interval_seconds=settings.emergency_poll_seconds,
    )

@router.get("/{alert_id}", response_model=EmergencyAlertResponse)
async def get_alert(
    alert_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Get one alert."""
    alert = emergency_service.get_alert(db, alert_id)
    check_patient_access(current_user, alert.patient_id)
    return alert

#acknowledge | resolve | cancel
@router.patch("/{alert_id}", response_model=EmergencyAlertResponse)
async def update_alert(
    alert_id: int,
    action_data: EmergencyAlertAction,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Move an alert through its workflow."""
    alert = emergency_service.get_alert(db, alert_id)
    check_patient_access(current_user, alert.patient_id)
    #only admins may record an action for someone else
    if action_data.user_id != current_user.id and current_user.role != UserRole.ADMIN:
        raise PermissionDeniedError("Cannot act on behalf of another user")
    old_status = alert.status

    handler, audit_action = ACTION_HANDLERS[action_data.action]
    alert = handler(db, alert_id, action_data.user_id, action_data.notes)

    get_audit_logger(db).log_status_change(
        action=audit_action,
        entity_type=AuditEntityType.EMERGENCY_ALERT,
        entity_id=alert.id,
        old_status=old_status,
        new_status=alert.status,
        user=current_user,
        patient_id=alert.patient_id,
        request=request,
    )
    return alert
