from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import List, Optional

from ..database import get_db
from ..errors import ValidationError
from ..models.audit_log import AuditAction, AuditEntityType
from ..models.user import User
from ..schemas.task import TaskCreate, TaskDeleteResponse, TaskResponse, TaskUpdate
from ..services import tasks as task_service
from ..utils.audit import get_audit_logger
from ..utils.deps import require_staff

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

#exactly the filters the dashboards use; at least one is required
@router.get("", response_model=List[TaskResponse])
async def get_tasks(
    doctor_id: Optional[int] = Query(None, alias="doctorId"),
    vhv_id: Optional[int] = Query(None, alias="vhvId"),
    patient_id: Optional[int] = Query(None, alias="patientId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """List tasks for a doctor, VHV or patient."""
    return task_service.list_tasks(db, doctor_id=doctor_id, vhv_id=vhv_id, patient_id=patient_id)

@router.post("", response_model=TaskResponse)
async def create_task(
    task_data: TaskCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Create a task."""
    task = task_service.create_task(db, task_data)

    get_audit_logger(db).log_action(
        action=AuditAction.CREATE,
        entity_type=AuditEntityType.TASK,
        entity_id=task.id,
        patient_id=task.patient_id,
        user=current_user,
        description=f"Created task '{task.title}'",
        request=request,
    )
    return task

@router.put("", response_model=TaskResponse)
async def update_task(
    task_data: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Update a task; the id travels in the body."""
    return task_service.update_task(db, task_data)

@router.delete("", response_model=TaskDeleteResponse)
async def delete_task(
    request: Request,
    task_id: int = Query(..., alias="id"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Hard-delete a task."""
    task = task_service.get_task(db, task_id)
    patient_id, title = task.patient_id, task.title
    task_service.delete_task(db, task_id)

    get_audit_logger(db).log_action(
        action=AuditAction.DELETE,
        entity_type=AuditEntityType.TASK,
        entity_id=task_id,
        patient_id=patient_id,
        user=current_user,
        description=f"Deleted task '{title}'",
        request=request,
    )
    return TaskDeleteResponse(success=True, id=task_id)

@router.patch("", response_model=TaskResponse)
async def patch_task(
    task_id: int = Query(..., alias="id"),
    action: str = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Run a task action; only ``complete`` exists."""
    if action != "complete":
        raise ValidationError(f"Invalid action: {action}")
    return task_service.complete_task(db, task_id)
