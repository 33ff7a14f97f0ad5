import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from ..errors import InvalidTransitionError, ValidationError
from ..models.health_worker import HealthWorker
from ..models.intake import IntakeStatus, IntakeSubmission, ReviewAction, ReviewActionType
from ..models.user import User
from ..utils.dates import to_naive_utc, utcnow
from .intakes import get_intake

logger = logging.getLogger(__name__)

#status each review action moves a SUBMITTED intake to
REVIEW_OUTCOMES = {
    ReviewActionType.APPROVE: IntakeStatus.APPROVED,
    ReviewActionType.REQUEST_CHANGES: IntakeStatus.CHANGES_REQUESTED,
    ReviewActionType.REJECT: IntakeStatus.REJECTED,
}


def review_queue(
    db: Session,
    status: Optional[IntakeStatus] = None,
    date_from: Optional[datetime] = None,
) -> List[IntakeSubmission]:
    query = db.query(IntakeSubmission).options(
        joinedload(IntakeSubmission.patient),
        joinedload(IntakeSubmission.vhv).joinedload(HealthWorker.user),
    ).filter(IntakeSubmission.status == (status or IntakeStatus.SUBMITTED))

    if date_from is not None:
        query = query.filter(IntakeSubmission.submitted_at >= to_naive_utc(date_from))

    return query.order_by(IntakeSubmission.created_at.desc(), IntakeSubmission.id.desc()).all()


def review_intake(
    db: Session,
    intake_id: int,
    action: ReviewActionType,
    reviewer: User,
    comment: Optional[str] = None,
) -> IntakeSubmission:
    """Record a doctor's decision on a SUBMITTED intake."""
    intake = get_intake(db, intake_id)
    target = REVIEW_OUTCOMES[action]

    if intake.status != IntakeStatus.SUBMITTED:
        raise InvalidTransitionError("intake", intake.status, target)
    if action == ReviewActionType.REQUEST_CHANGES and not comment:
        raise ValidationError("comment is required when requesting changes")

    db.add(ReviewAction(
        submission_id=intake.id,
        reviewer_id=reviewer.id,
        action=action,
        comment=comment,
    ))
    intake.status = target
    intake.reviewed_at = utcnow()
    db.commit()
    db.refresh(intake)

    logger.info("Intake %s %s by user %s", intake_id, target.value, reviewer.id)
    return intake


def approve(db: Session, intake_id: int, reviewer: User, comment: Optional[str] = None) -> IntakeSubmission:
    return review_intake(db, intake_id, ReviewActionType.APPROVE, reviewer, comment)


def request_changes(db: Session, intake_id: int, reviewer: User, comment: str) -> IntakeSubmission:
    return review_intake(db, intake_id, ReviewActionType.REQUEST_CHANGES, reviewer, comment)


def reject(db: Session, intake_id: int, reviewer: User, comment: Optional[str] = None) -> IntakeSubmission:
    return review_intake(db, intake_id, ReviewActionType.REJECT, reviewer, comment)


def list_review_actions(db: Session, intake_id: int) -> List[ReviewAction]:
    intake = get_intake(db, intake_id)
    return list(intake.review_actions)
