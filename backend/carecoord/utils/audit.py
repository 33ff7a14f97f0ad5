#Centralized creation of audit log rows
import logging
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from ..models.audit_log import AuditLog, AuditAction, AuditEntityType
from ..models.user import User

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


class AuditLogger:
    def __init__(self, db: Session):
        self.db = db

    def log_action(
        self,
        action: AuditAction,
        entity_type: AuditEntityType,
        description: str,
        user: Optional[User] = None,
        entity_id: Any = None,
        patient_id: Optional[int] = None,
        changes: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        request: Optional[Request] = None,
        success: bool = True,
        error_message: Optional[str] = None,
    ) -> AuditLog:
        """Write one audit row and commit it."""
        audit_log = AuditLog(
            user_id=user.id if user else None,
            user_email=user.email if user else None,
            user_role=user.role.value if user else None,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            patient_id=patient_id,
            description=description,
            changes=changes,
            extra_data=metadata,
            success=success,
            error_message=error_message,
        )

        if request is not None:
            audit_log.ip_address = get_client_ip(request)
            audit_log.user_agent = request.headers.get("User-Agent")
            audit_log.request_path = request.url.path

        self.db.add(audit_log)
        self.db.commit()
        logger.debug("audit %s %s %s", action.value, entity_type.value, audit_log.entity_id)
        return audit_log

    def log_status_change(
        self,
        action: AuditAction,
        entity_type: AuditEntityType,
        entity_id: Any,
        old_status,
        new_status,
        user: Optional[User] = None,
        patient_id: Optional[int] = None,
        request: Optional[Request] = None,
    ) -> AuditLog:
        old_value = getattr(old_status, "value", old_status)
        new_value = getattr(new_status, "value", new_status)
        return self.log_action(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user=user,
            patient_id=patient_id,
            description=f"{entity_type.value} {entity_id}: {old_value} -> {new_value}",
            changes={"status": {"from": old_value, "to": new_value}},
            request=request,
        )


def get_audit_logger(db: Session) -> AuditLogger:
    return AuditLogger(db)
