from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import List, Optional

from ..database import get_db
from ..models.audit_log import AuditAction, AuditEntityType
from ..models.intake import IntakeStatus
from ..models.user import User
from ..schemas.intake import IntakeCreate, IntakeDetail, IntakeResponse, IntakeUpdate
from ..services import intakes as intake_service
from ..utils.audit import get_audit_logger
from ..utils.deps import require_staff

router = APIRouter(prefix="/api/intakes", tags=["intakes"])

#New DRAFT with the visit metadata and patient basics pre-filled
@router.post("", response_model=IntakeResponse)
async def create_intake(
    intake_data: IntakeCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Start a new intake for a patient."""
    intake = intake_service.create_intake(db, intake_data)

    get_audit_logger(db).log_action(
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.INTAKE,
        entity_id=intake.id,
        patient_id=intake.patient_id,
        user=current_user,
        description=f"Started intake for patient {intake.patient_id}",
        request=request,
    )
    return intake

@router.get("", response_model=List[IntakeResponse])
async def get_intakes(
    patient_id: Optional[int] = Query(None, alias="patientId"),
    vhv_id: Optional[int] = Query(None, alias="vhvId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """List intakes of a patient or a VHV."""
    return intake_service.list_intakes(db, patient_id=patient_id, vhv_id=vhv_id)

#Merge payload sections; a status in the body goes through the workflow
@router.put("", response_model=IntakeResponse)
async def update_intake(
    intake_data: IntakeUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Update an intake's payload, attachments or status."""
    old_status = intake_service.get_intake(db, intake_data.id).status
    intake = intake_service.update_intake(db, intake_data)

    if intake.status != old_status:
        get_audit_logger(db).log_status_change(
            action=AuditAction.SUBMIT if intake.status == IntakeStatus.SUBMITTED else AuditAction.UPDATE,
            entity_type=AuditEntityType.INTAKE,
            entity_id=intake.id,
            old_status=old_status,
            new_status=intake.status,
            user=current_user,
            patient_id=intake.patient_id,
            request=request,
        )
    return intake

@router.get("/{intake_id}", response_model=IntakeDetail)
async def get_intake(
    intake_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Get one intake with its review history."""
    return intake_service.get_intake(db, intake_id)

@router.post("/{intake_id}/submit", response_model=IntakeResponse)
async def submit_intake(
    intake_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Send a draft (or returned) intake for doctor review."""
    old_status = intake_service.get_intake(db, intake_id).status
    intake = intake_service.submit_intake(db, intake_id)

    get_audit_logger(db).log_status_change(
        action=AuditAction.SUBMIT,
        entity_type=AuditEntityType.INTAKE,
        entity_id=intake.id,
        old_status=old_status,
        new_status=intake.status,
        user=current_user,
        patient_id=intake.patient_id,
        request=request,
    )
    return intake
