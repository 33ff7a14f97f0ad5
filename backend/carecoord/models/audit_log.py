#full audit logging model using SQLAlchemy ORM
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Enum, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
#to create controlled, type-safe values
import enum
from ..database import Base

#Defines allowed actions that can be logged
class AuditAction(enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    ASSIGN = "ASSIGN"
    SUBMIT = "SUBMIT"
    REVIEW = "REVIEW"
    ACKNOWLEDGE = "ACKNOWLEDGE"
    RESOLVE = "RESOLVE"
    CANCEL = "CANCEL"

#Identifies what kind of entity the action was performed on.
class AuditEntityType(enum.Enum):
    USER = "USER"
    PATIENT = "PATIENT"
    ASSIGNMENT = "ASSIGNMENT"
    TASK = "TASK"
    INTAKE = "INTAKE"
    EMERGENCY_ALERT = "EMERGENCY_ALERT"
    APPOINTMENT = "APPOINTMENT"
    SYSTEM = "SYSTEM"

class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    # User performing the action
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    user_email = Column(String, nullable=True)  # kept when the user row changes
    user_role = Column(String, nullable=True)

    # Action details
    action = Column(Enum(AuditAction), nullable=False, index=True)
    entity_type = Column(Enum(AuditEntityType), nullable=False, index=True)
    entity_id = Column(String, nullable=True)  # string to handle any id type
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=True)

    # Details
    description = Column(Text, nullable=False)
    changes = Column(JSON, nullable=True)  # before/after values for status changes
    #"metadata" is reserved on declarative classes
    extra_data = Column("metadata", JSON, nullable=True)

    # Request information
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    request_path = Column(String, nullable=True)

    # Status
    success = Column(Boolean, default=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Relationships
    user = relationship("User", foreign_keys=[user_id])
