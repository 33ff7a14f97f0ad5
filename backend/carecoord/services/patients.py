import logging
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ..errors import NotFoundError, PermissionDeniedError, ValidationError
from ..models.assignment import Assignment, AssignmentStatus
from ..models.health_worker import HealthWorker, HealthWorkerType
from ..models.intake import IntakeSubmission
from ..models.patient import Patient
from ..models.task import Task
from ..models.user import User, UserRole
from ..schemas.assignment import AssignmentDetail, AssignPatientRequest
from ..schemas.intake import IntakeResponse
from ..schemas.patient import PatientBrief, PatientCreate, PatientUpdate
from ..schemas.task import TaskResponse
from ..schemas.user import WorkerBrief
from ..utils.dates import utcnow

logger = logging.getLogger(__name__)


def get_patient(db: Session, patient_id: int) -> Patient:
    patient = db.get(Patient, patient_id)
    if patient is None:
        raise NotFoundError("Patient", patient_id)
    return patient


def check_patient_access(user: User, patient_id: int) -> None:
    """Patients may only touch their own record; staff roles are unrestricted."""
    if user.role != UserRole.PATIENT:
        return
    profile = user.patient_profile
    if profile is None or profile.id != patient_id:
        raise PermissionDeniedError("Access denied")


def get_health_worker(db: Session, worker_id: int, worker_type: HealthWorkerType) -> HealthWorker:
    label = "Doctor" if worker_type == HealthWorkerType.DOCTOR else "VHV"
    worker = db.get(HealthWorker, worker_id)
    if worker is None:
        raise NotFoundError(label, worker_id)
    if worker.type != worker_type:
        raise ValidationError(f"Health worker {worker_id} is not a {label}")
    return worker


def create_patient(db: Session, data: PatientCreate) -> Patient:
    if data.user_id is not None:
        user = db.get(User, data.user_id)
        if user is None or user.role != UserRole.PATIENT:
            raise ValidationError(f"User {data.user_id} is not a patient account")
        if user.patient_profile is not None:
            raise ValidationError(f"User {data.user_id} already has a patient record")

    patient = Patient(**data.dict())
    db.add(patient)
    db.commit()
    db.refresh(patient)
    logger.info("Created patient %s", patient.id)
    return patient


def list_patients(
    db: Session,
    search: Optional[str] = None,
    page: int = 1,
    per_page: int = 20,
    user: Optional[User] = None,
) -> Tuple[List[Patient], int]:
    query = db.query(Patient)

    if user is not None and user.role == UserRole.PATIENT:
        profile_id = user.patient_profile.id if user.patient_profile else -1
        query = query.filter(Patient.id == profile_id)

    if search:
        search_filter = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Patient.first_name.ilike(search_filter),
                Patient.last_name.ilike(search_filter),
                Patient.email.ilike(search_filter),
                Patient.national_id.ilike(search_filter),
                Patient.phone.ilike(search_filter),
            )
        )

    total = query.count()
    offset = (page - 1) * per_page
    patients = (
        query.order_by(Patient.created_at.desc(), Patient.id.desc())
        .offset(offset)
        .limit(per_page)
        .all()
    )
    return patients, total


def update_patient(db: Session, patient_id: int, data: PatientUpdate) -> Patient:
    patient = get_patient(db, patient_id)
    for field, value in data.dict(exclude_unset=True).items():
        setattr(patient, field, value)
    db.commit()
    db.refresh(patient)
    return patient


def get_active_assignment(db: Session, patient_id: int) -> Optional[Assignment]:
    """Most recent ACTIVE assignment of a patient, used to route alerts."""
    return (
        db.query(Assignment)
        .filter(
            Assignment.patient_id == patient_id,
            Assignment.status == AssignmentStatus.ACTIVE,
        )
        .order_by(Assignment.assigned_at.desc(), Assignment.id.desc())
        .first()
    )


def assign_patient(db: Session, data: AssignPatientRequest) -> Tuple[Assignment, List[Task]]:
    """Create or re-point the (patient, VHV) assignment and add its tasks."""
    get_patient(db, data.patient_id)
    get_health_worker(db, data.vhv_id, HealthWorkerType.VHV)
    get_health_worker(db, data.doctor_id, HealthWorkerType.DOCTOR)

    assignment = db.query(Assignment).filter(
        Assignment.patient_id == data.patient_id,
        Assignment.vhv_id == data.vhv_id,
    ).first()
    if assignment is None:
        assignment = Assignment(
            patient_id=data.patient_id,
            vhv_id=data.vhv_id,
            doctor_id=data.doctor_id,
            status=AssignmentStatus.ACTIVE,
            assigned_at=utcnow(),
        )
        db.add(assignment)
    else:
        assignment.doctor_id = data.doctor_id
        assignment.status = AssignmentStatus.ACTIVE
        assignment.assigned_at = utcnow()

    tasks = [
        Task(
            title=item.title,
            description=item.description,
            priority=item.priority,
            due_date=item.due_date,
            patient_id=data.patient_id,
            vhv_id=data.vhv_id,
            doctor_id=data.doctor_id,
        )
        for item in data.tasks
    ]
    db.add_all(tasks)
    db.commit()

    db.refresh(assignment)
    for task in tasks:
        db.refresh(task)
    logger.info(
        "Assigned patient %s to VHV %s under doctor %s with %d task(s)",
        data.patient_id, data.vhv_id, data.doctor_id, len(tasks),
    )
    return assignment, tasks


def get_assignment(db: Session, assignment_id: int) -> Assignment:
    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        raise NotFoundError("Assignment", assignment_id)
    return assignment


def update_assignment_status(db: Session, assignment_id: int, status: AssignmentStatus) -> Assignment:
    assignment = get_assignment(db, assignment_id)
    assignment.status = status
    db.commit()
    db.refresh(assignment)
    return assignment


def build_assignment_detail(db: Session, assignment: Assignment, include_intakes: bool = False) -> AssignmentDetail:
    tasks = (
        db.query(Task)
        .filter(
            Task.patient_id == assignment.patient_id,
            Task.vhv_id == assignment.vhv_id,
        )
        .order_by(Task.created_at.desc(), Task.id.desc())
        .all()
    )
    intakes = []
    if include_intakes:
        intakes = (
            db.query(IntakeSubmission)
            .filter(
                IntakeSubmission.patient_id == assignment.patient_id,
                IntakeSubmission.vhv_id == assignment.vhv_id,
            )
            .order_by(IntakeSubmission.created_at.desc(), IntakeSubmission.id.desc())
            .all()
        )

    return AssignmentDetail(
        id=assignment.id,
        patient_id=assignment.patient_id,
        vhv_id=assignment.vhv_id,
        doctor_id=assignment.doctor_id,
        status=assignment.status,
        assigned_at=assignment.assigned_at,
        created_at=assignment.created_at,
        updated_at=assignment.updated_at,
        patient=PatientBrief.model_validate(assignment.patient),
        vhv=WorkerBrief.from_worker(assignment.vhv),
        doctor=WorkerBrief.from_worker(assignment.doctor),
        tasks=[TaskResponse.model_validate(task) for task in tasks],
        intakes=[IntakeResponse.model_validate(intake) for intake in intakes],
    )


def _assignment_query(db: Session):
    return db.query(Assignment).options(
        joinedload(Assignment.patient),
        joinedload(Assignment.vhv).joinedload(HealthWorker.user),
        joinedload(Assignment.doctor).joinedload(HealthWorker.user),
    )


def list_doctor_assignments(db: Session, doctor_id: int) -> List[AssignmentDetail]:
    assignments = (
        _assignment_query(db)
        .filter(Assignment.doctor_id == doctor_id)
        .order_by(Assignment.created_at.desc(), Assignment.id.desc())
        .all()
    )
    return [build_assignment_detail(db, assignment) for assignment in assignments]


def list_vhv_assignments(db: Session, vhv_id: int) -> List[AssignmentDetail]:
    """ACTIVE assignments of a VHV with their intakes and tasks."""
    assignments = (
        _assignment_query(db)
        .filter(
            Assignment.vhv_id == vhv_id,
            Assignment.status == AssignmentStatus.ACTIVE,
        )
        .order_by(Assignment.created_at.desc(), Assignment.id.desc())
        .all()
    )
    return [build_assignment_detail(db, assignment, include_intakes=True) for assignment in assignments]
