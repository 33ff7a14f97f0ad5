from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime

from ..database import get_db
from ..models.audit_log import AuditAction, AuditEntityType
from ..models.intake import IntakeStatus
from ..models.user import User
from ..schemas.intake import IntakeDetail, ReviewActionResponse, ReviewQueueItem
from ..schemas.review import ReviewDecision, ReviewRequest
from ..services import reviews as review_service
from ..services.intakes import get_intake
from ..utils.audit import get_audit_logger
from ..utils.params import parse_enum
from ..utils.deps import require_reviewer, require_staff

router = APIRouter(prefix="/api/reviews", tags=["reviews"])

REVIEW_HANDLERS = {
    ReviewDecision.APPROVE: review_service.approve,
    ReviewDecision.REQUEST_CHANGES: review_service.request_changes,
    ReviewDecision.REJECT: review_service.reject,
}

#Submitted intakes waiting for a doctor, newest first
@router.get("", response_model=List[ReviewQueueItem])
async def get_review_queue(
    status: Optional[str] = None,
    date_from: Optional[datetime] = Query(None, alias="from"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Review queue with patient and VHV summaries."""
    intakes = review_service.review_queue(
        db, status=parse_enum(IntakeStatus, status, "status"), date_from=date_from
    )
    return [ReviewQueueItem.from_intake(intake) for intake in intakes]

@router.post("", response_model=IntakeDetail)
async def review_intake(
    review_data: ReviewRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reviewer)
):
    """Approve, request changes on, or reject a submitted intake."""
    old_status = get_intake(db, review_data.id).status
    handler = REVIEW_HANDLERS[review_data.action]
    intake = handler(db, review_data.id, current_user, review_data.comment)

    get_audit_logger(db).log_action(
        action=AuditAction.REVIEW,
        entity_type=AuditEntityType.INTAKE,
        entity_id=intake.id,
        patient_id=intake.patient_id,
        user=current_user,
        description=f"Intake {intake.id} {review_data.action.value}",
        changes={"status": {"from": old_status.value, "to": intake.status.value}},
        metadata={"comment": review_data.comment} if review_data.comment else None,
        request=request,
    )
    return intake

@router.get("/{intake_id}/actions", response_model=List[ReviewActionResponse])
async def get_review_actions(
    intake_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff)
):
    """Review history of an intake, oldest first."""
    return review_service.list_review_actions(db, intake_id)
