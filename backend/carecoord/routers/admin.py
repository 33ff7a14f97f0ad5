from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import desc
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime

from ..database import get_db
from ..models.audit_log import AuditLog, AuditAction, AuditEntityType
from ..models.health_worker import HealthWorkerType
from ..models.patient import Patient
from ..models.user import User, UserRole
from ..schemas.audit import AuditLogListResponse, AuditLogResponse
from ..schemas.patient import PatientAccountCreate, PatientAccountResponse, PatientResponse
from ..schemas.user import AdminStats, HealthWorkerResponse, UserCreate, UserStatusUpdate, UserSummary
from ..services import users as user_service
from ..utils.audit import get_audit_logger
from ..utils.dates import to_naive_utc
from ..utils.deps import require_admin

#every route here is admin only
router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])

@router.post("/create-user", response_model=UserSummary)
async def create_user(
    user_data: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Create a login plus its role record (doctor, VHV or patient)."""
    user, record = user_service.create_user(db, user_data)

    get_audit_logger(db).log_action(
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.USER,
        entity_id=user.id,
        user=current_user,
        description=f"Created {user.role.value} account {user.email}",
        metadata={"role": user.role.value, "profileId": record.id if record else None},
        request=request,
    )
    return UserSummary.from_user(user, profile_id=record.id if record else None)

#patient record and its login in one call
@router.post("/create-patient", response_model=PatientAccountResponse)
async def create_patient(
    patient_data: PatientAccountCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Create a patient with a login account."""
    patient = user_service.create_patient_account(db, patient_data)

    get_audit_logger(db).log_action(
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.PATIENT,
        entity_id=patient.id,
        patient_id=patient.id,
        user=current_user,
        description=f"Created patient {patient.full_name} with account {patient_data.email}",
        request=request,
    )
    return PatientAccountResponse(success=True, patient=PatientResponse.model_validate(patient))

@router.get("/admins", response_model=List[UserSummary])
async def get_admins(db: Session = Depends(get_db)):
    """List admin accounts."""
    return [UserSummary.from_user(user) for user in user_service.list_users(db, UserRole.ADMIN)]

@router.get("/doctors", response_model=List[HealthWorkerResponse])
async def get_doctors(db: Session = Depends(get_db)):
    """List doctors."""
    workers = user_service.list_health_workers(db, HealthWorkerType.DOCTOR)
    return [HealthWorkerResponse.from_worker(worker) for worker in workers]

@router.get("/vhvs", response_model=List[HealthWorkerResponse])
async def get_vhvs(db: Session = Depends(get_db)):
    """List village health volunteers."""
    workers = user_service.list_health_workers(db, HealthWorkerType.VHV)
    return [HealthWorkerResponse.from_worker(worker) for worker in workers]

@router.get("/patients", response_model=List[PatientResponse])
async def get_patients(db: Session = Depends(get_db)):
    """List patient records."""
    patients = db.query(Patient).order_by(Patient.created_at.desc(), Patient.id.desc()).all()
    return [PatientResponse.model_validate(patient) for patient in patients]

@router.get("/users", response_model=List[UserSummary])
async def get_users(
    role: Optional[UserRole] = None,
    db: Session = Depends(get_db)
):
    """List every login, optionally filtered by role."""
    return [
        UserSummary.from_user(user, profile_id=user_service.profile_id_for(user))
        for user in user_service.list_users(db, role)
    ]

@router.patch("/users/{user_id}", response_model=UserSummary)
async def set_user_status(
    user_id: int,
    status_update: UserStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Activate or deactivate a user."""
    user = user_service.set_user_active(db, user_id, status_update.is_active)

    get_audit_logger(db).log_action(
        action=AuditAction.UPDATE,
        entity_type=AuditEntityType.USER,
        entity_id=user.id,
        user=current_user,
        description=f"{'Activated' if user.is_active else 'Deactivated'} user {user.email}",
        changes={"isActive": user.is_active},
        request=request,
    )
    return UserSummary.from_user(user, profile_id=user_service.profile_id_for(user))

@router.get("/stats", response_model=AdminStats)
async def get_stats(db: Session = Depends(get_db)):
    """Dashboard counts."""
    return user_service.get_admin_stats(db)

#Returns audit logs, newest first
@router.get("/audit-logs", response_model=AuditLogListResponse)
async def get_audit_logs(
    #Prevents database overload
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100, alias="perPage"),
    action: Optional[AuditAction] = None,
    entity_type: Optional[AuditEntityType] = Query(None, alias="entityType"),
    user_id: Optional[int] = Query(None, alias="userId"),
    patient_id: Optional[int] = Query(None, alias="patientId"),
    date_from: Optional[datetime] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(None, alias="dateTo"),
    success: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    """Get audit logs with filtering."""
    query = db.query(AuditLog)

    # Apply filters
    if action:
        query = query.filter(AuditLog.action == action)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if user_id:
        query = query.filter(AuditLog.user_id == user_id)
    if patient_id:
        query = query.filter(AuditLog.patient_id == patient_id)
    if date_from:
        query = query.filter(AuditLog.created_at >= to_naive_utc(date_from))
    if date_to:
        query = query.filter(AuditLog.created_at <= to_naive_utc(date_to))
    if success is not None:
        query = query.filter(AuditLog.success == success)

    total = query.count()

    # Apply pagination and ordering
    offset = (page - 1) * per_page
    logs = query.order_by(desc(AuditLog.created_at), desc(AuditLog.id)).offset(offset).limit(per_page).all()

    return AuditLogListResponse(
        logs=[AuditLogResponse.from_log(log) for log in logs],
        total=total,
        page=page,
        per_page=per_page
    )
