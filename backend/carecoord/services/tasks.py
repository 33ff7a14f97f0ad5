import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..errors import NotFoundError, ValidationError
from ..models.health_worker import HealthWorkerType
from ..models.task import Task, TaskStatus
from ..schemas.task import TaskCreate, TaskUpdate
from ..utils.dates import utcnow
from .patients import get_health_worker, get_patient

logger = logging.getLogger(__name__)


def get_task(db: Session, task_id: int) -> Task:
    task = db.get(Task, task_id)
    if task is None:
        raise NotFoundError("Task", task_id)
    return task


def list_tasks(
    db: Session,
    doctor_id: Optional[int] = None,
    vhv_id: Optional[int] = None,
    patient_id: Optional[int] = None,
) -> List[Task]:
    if doctor_id is None and vhv_id is None and patient_id is None:
        raise ValidationError("doctorId, vhvId or patientId is required")

    query = db.query(Task)
    if doctor_id is not None:
        query = query.filter(Task.doctor_id == doctor_id)
    if vhv_id is not None:
        query = query.filter(Task.vhv_id == vhv_id)
    if patient_id is not None:
        query = query.filter(Task.patient_id == patient_id)
    return query.order_by(Task.created_at.desc(), Task.id.desc()).all()


def create_task(db: Session, data: TaskCreate) -> Task:
    get_patient(db, data.patient_id)
    get_health_worker(db, data.vhv_id, HealthWorkerType.VHV)
    get_health_worker(db, data.doctor_id, HealthWorkerType.DOCTOR)

    task = Task(**data.dict(), status=TaskStatus.PENDING)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def update_task(db: Session, data: TaskUpdate) -> Task:
    task = get_task(db, data.id)
    changes = data.dict(exclude_unset=True, exclude={"id"})

    for field, value in changes.items():
        if value is None and field in ("title", "priority", "status"):
            continue
        setattr(task, field, value)

    #completedAt follows the status
    if task.status == TaskStatus.COMPLETED and task.completed_at is None:
        task.completed_at = utcnow()
    elif task.status != TaskStatus.COMPLETED:
        task.completed_at = None

    db.commit()
    db.refresh(task)
    return task


def complete_task(db: Session, task_id: int) -> Task:
    task = get_task(db, task_id)
    task.status = TaskStatus.COMPLETED
    task.completed_at = utcnow()
    db.commit()
    db.refresh(task)
    logger.info("Task %s completed", task_id)
    return task


def delete_task(db: Session, task_id: int) -> None:
    task = get_task(db, task_id)
    db.delete(task)
    db.commit()
    logger.info("Task %s deleted", task_id)
