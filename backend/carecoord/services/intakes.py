"""Intake submissions collected by VHVs.

Status flow::

    DRAFT -> SUBMITTED -> APPROVED | CHANGES_REQUESTED | REJECTED
    CHANGES_REQUESTED -> DRAFT (on edit) -> SUBMITTED

Review outcomes are set in ``services.reviews``; this module owns drafting and
submission.
"""
import copy
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..errors import InvalidTransitionError, NotFoundError, ValidationError
from ..models.health_worker import HealthWorkerType
from ..models.intake import IntakeStatus, IntakeSubmission
from ..models.patient import Patient
from ..schemas.intake import IntakeCreate, IntakePayload, IntakeUpdate
from ..utils.dates import utcnow
from .patients import get_health_worker, get_patient

logger = logging.getLogger(__name__)

SUBMITTABLE = (IntakeStatus.DRAFT, IntakeStatus.CHANGES_REQUESTED)


def default_payload(patient: Patient, vhv_id: Optional[int]) -> Dict[str, Any]:
    return {
        "visitMeta": {
            "visitDateTime": utcnow().isoformat(),
            "vhvId": vhv_id,
            "locationText": "",
        },
        "patientBasics": {
            "firstName": patient.first_name,
            "lastName": patient.last_name,
            "dob": patient.dob.isoformat() if patient.dob else "",
            "contactPhone": patient.phone or "",
        },
    }


def deep_merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """Return a new dict with ``updates`` merged into ``base`` section by section."""
    merged = copy.deepcopy(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def validate_payload(payload: Dict[str, Any]) -> None:
    try:
        IntakePayload.model_validate(payload)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        location = ".".join(str(part) for part in error["loc"])
        raise ValidationError(f"payload.{location}: {error['msg']}")


def get_intake(db: Session, intake_id: int) -> IntakeSubmission:
    intake = db.get(IntakeSubmission, intake_id)
    if intake is None:
        raise NotFoundError("Intake", intake_id)
    return intake


def create_intake(db: Session, data: IntakeCreate) -> IntakeSubmission:
    patient = get_patient(db, data.patient_id)
    if data.vhv_id is not None:
        get_health_worker(db, data.vhv_id, HealthWorkerType.VHV)

    intake = IntakeSubmission(
        patient_id=patient.id,
        vhv_id=data.vhv_id,
        status=IntakeStatus.DRAFT,
        payload=default_payload(patient, data.vhv_id),
        attachments=[],
    )
    db.add(intake)
    db.commit()
    db.refresh(intake)
    logger.info("Created intake %s for patient %s", intake.id, patient.id)
    return intake


def list_intakes(
    db: Session,
    patient_id: Optional[int] = None,
    vhv_id: Optional[int] = None,
) -> List[IntakeSubmission]:
    if patient_id is None and vhv_id is None:
        raise ValidationError("patientId or vhvId is required")

    query = db.query(IntakeSubmission)
    if patient_id is not None:
        query = query.filter(IntakeSubmission.patient_id == patient_id)
    if vhv_id is not None:
        query = query.filter(IntakeSubmission.vhv_id == vhv_id)
    return query.order_by(IntakeSubmission.created_at.desc(), IntakeSubmission.id.desc()).all()


def _submit(intake: IntakeSubmission) -> None:
    if intake.status not in SUBMITTABLE:
        raise InvalidTransitionError("intake", intake.status, IntakeStatus.SUBMITTED)
    intake.status = IntakeStatus.SUBMITTED
    intake.submitted_at = utcnow()


def _reopen(intake: IntakeSubmission) -> None:
    if intake.status == IntakeStatus.DRAFT:
        return
    if intake.status != IntakeStatus.CHANGES_REQUESTED:
        raise InvalidTransitionError("intake", intake.status, IntakeStatus.DRAFT)
    intake.status = IntakeStatus.DRAFT


def update_intake(db: Session, data: IntakeUpdate) -> IntakeSubmission:
    """Merge payload changes, replace attachments, and apply a requested status."""
    intake = get_intake(db, data.id)
    edited = False

    if data.payload is not None:
        merged = deep_merge(intake.payload or {}, data.payload)
        validate_payload(merged)
        #new object so the JSON column is marked dirty
        intake.payload = merged
        edited = True

    if data.attachments is not None:
        intake.attachments = list(data.attachments)
        edited = True

    #a returned intake goes back to draft as soon as it is edited
    if edited and intake.status == IntakeStatus.CHANGES_REQUESTED:
        intake.status = IntakeStatus.DRAFT

    if data.status is not None and data.status != intake.status:
        if data.status == IntakeStatus.SUBMITTED:
            _submit(intake)
        elif data.status == IntakeStatus.DRAFT:
            _reopen(intake)
        else:
            raise InvalidTransitionError("intake", intake.status, data.status)

    db.commit()
    db.refresh(intake)
    return intake


def submit_intake(db: Session, intake_id: int) -> IntakeSubmission:
    intake = get_intake(db, intake_id)
    _submit(intake)
    db.commit()
    db.refresh(intake)
    logger.info("Intake %s submitted", intake_id)
    return intake
