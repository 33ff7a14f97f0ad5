from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import List, Optional

from ..database import get_db
from ..models.audit_log import AuditAction, AuditEntityType
from ..models.user import User
from ..schemas.assignment import (
    AssignmentDetail, AssignmentResponse, AssignmentStatusUpdate,
    AssignPatientRequest, AssignPatientResponse,
)
from ..schemas.patient import PatientCreate, PatientListResponse, PatientResponse, PatientUpdate
from ..schemas.task import TaskResponse
from ..services import patients as patient_service
from ..utils.audit import get_audit_logger
from ..utils.deps import get_current_active_user, require_reviewer, require_staff

router = APIRouter(prefix="/api/patients", tags=["patients"])

#Create a patient record without a login
@router.post("", response_model=PatientResponse)
async def create_patient(
    patient_data: PatientCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Create a new patient record."""
    patient = patient_service.create_patient(db, patient_data)

    get_audit_logger(db).log_action(
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.PATIENT,
        entity_id=patient.id,
        patient_id=patient.id,
        user=current_user,
        description=f"Created patient {patient.full_name}",
        request=request,
    )
    return PatientResponse.model_validate(patient)

#List patients with search; patients only ever see themselves
@router.get("", response_model=PatientListResponse)
async def get_patients(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100, alias="perPage"),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Get patients with search and pagination."""
    patients, total = patient_service.list_patients(
        db, search=search, page=page, per_page=per_page, user=current_user
    )
    return PatientListResponse(
        patients=[PatientResponse.model_validate(patient) for patient in patients],
        total=total,
        page=page,
        per_page=per_page
    )

#Assign a patient to a VHV under a doctor, with optional tasks
@router.post("/assign", response_model=AssignPatientResponse)
async def assign_patient(
    assign_data: AssignPatientRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reviewer)
):
    """Create or update the patient's assignment and create its tasks."""
    assignment, tasks = patient_service.assign_patient(db, assign_data)

    get_audit_logger(db).log_action(
        action=AuditAction.ASSIGN,
        entity_type=AuditEntityType.ASSIGNMENT,
        entity_id=assignment.id,
        patient_id=assignment.patient_id,
        user=current_user,
        description=(
            f"Assigned patient {assignment.patient_id} to VHV {assignment.vhv_id} "
            f"under doctor {assignment.doctor_id}"
        ),
        metadata={"taskIds": [task.id for task in tasks]},
        request=request,
    )
    return AssignPatientResponse(
        assignment=AssignmentResponse.model_validate(assignment),
        tasks=[TaskResponse.model_validate(task) for task in tasks],
    )

@router.get("/assignments", response_model=List[AssignmentDetail])
async def get_doctor_assignments(
    doctor_id: int = Query(..., alias="doctorId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Assignments supervised by a doctor, with patient, VHV and tasks."""
    return patient_service.list_doctor_assignments(db, doctor_id)

@router.patch("/assignments/{assignment_id}", response_model=AssignmentResponse)
async def update_assignment_status(
    assignment_id: int,
    status_update: AssignmentStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reviewer)
):
    """Complete or cancel an assignment."""
    old_status = patient_service.get_assignment(db, assignment_id).status
    assignment = patient_service.update_assignment_status(db, assignment_id, status_update.status)

    get_audit_logger(db).log_status_change(
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.ASSIGNMENT,
        entity_id=assignment.id,
        old_status=old_status,
        new_status=assignment.status,
        user=current_user,
        patient_id=assignment.patient_id,
        request=request,
    )
    return AssignmentResponse.model_validate(assignment)

@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Get one patient record."""
    patient_service.check_patient_access(current_user, patient_id)
    return PatientResponse.model_validate(patient_service.get_patient(db, patient_id))

@router.put("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: int,
    patient_update: PatientUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Update a patient record."""
    patient = patient_service.update_patient(db, patient_id, patient_update)

    get_audit_logger(db).log_action(
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.PATIENT,
        entity_id=patient.id,
        patient_id=patient.id,
        user=current_user,
        description=f"Updated patient {patient.full_name}",
        changes={"fields": sorted(patient_update.dict(exclude_unset=True))},
        request=request,
    )
    return PatientResponse.model_validate(patient)
