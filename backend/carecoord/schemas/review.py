from pydantic import validator
from typing import Optional
import enum
from .base import CamelModel
from ..models.intake import ReviewActionType
from ..utils.validators import SecureTextValidator, optional

#wire values of the review action
class ReviewDecision(enum.Enum):
    APPROVE = "approve"
    REQUEST_CHANGES = "request_changes"
    REJECT = "reject"

    @property
    def action_type(self) -> ReviewActionType:
        return ReviewActionType[self.name]

class ReviewRequest(CamelModel):
    id: int
    action: ReviewDecision
    comment: Optional[str] = None

    @validator('action', pre=True)
    def normalize_action(cls, v):
        return v.lower() if isinstance(v, str) else v

    @validator('comment')
    def validate_comment(cls, v):
        return optional(SecureTextValidator.sanitize_notes, v)
