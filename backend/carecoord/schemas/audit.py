from typing import Optional, List, Dict, Any
from datetime import datetime
from .base import CamelModel
from ..models.audit_log import AuditAction, AuditEntityType

#represents a full audit log record returned from the API.
class AuditLogResponse(CamelModel):
    id: int
    action: AuditAction
    entity_type: AuditEntityType
    entity_id: Optional[str] = None
    description: str
    success: bool = True
    user_id: Optional[int] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None
    patient_id: Optional[int] = None
    changes: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_path: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_log(cls, log) -> "AuditLogResponse":
        #the ORM attribute is extra_data; "metadata" belongs to the declarative base
        return cls(
            id=log.id,
            action=log.action,
            entity_type=log.entity_type,
            entity_id=log.entity_id,
            description=log.description,
            success=log.success if log.success is not None else True,
            user_id=log.user_id,
            user_email=log.user_email,
            user_role=log.user_role,
            patient_id=log.patient_id,
            changes=log.changes,
            metadata=log.extra_data,
            ip_address=log.ip_address,
            user_agent=log.user_agent,
            request_path=log.request_path,
            error_message=log.error_message,
            created_at=log.created_at,
        )

class AuditLogListResponse(CamelModel):
    logs: List[AuditLogResponse]
    total: int
    page: int
    per_page: int
