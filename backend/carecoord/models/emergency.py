from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from ..database import Base

class EmergencyPriority(enum.Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"

#ACTIVE -> ACKNOWLEDGED -> RESOLVED, or CANCELLED from either open state
class EmergencyStatus(enum.Enum):
    ACTIVE = "ACTIVE"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    RESOLVED = "RESOLVED"
    CANCELLED = "CANCELLED"

class EmergencyAlert(Base):
    __tablename__ = "emergency_alerts"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    triggered_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    priority = Column(Enum(EmergencyPriority), nullable=False)
    status = Column(Enum(EmergencyStatus), default=EmergencyStatus.ACTIVE, nullable=False, index=True)
    description = Column(Text)
    location = Column(String)

    # Routing, copied from the patient's active assignment at creation
    assigned_doctor_id = Column(Integer, ForeignKey("health_workers.id"), nullable=True)
    assigned_vhv_id = Column(Integer, ForeignKey("health_workers.id"), nullable=True)

    # Response tracking
    acknowledged_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    acknowledged_at = Column(DateTime(timezone=True))
    resolved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    resolved_at = Column(DateTime(timezone=True))
    cancelled_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancelled_at = Column(DateTime(timezone=True))
    response_time = Column(Integer)  # minutes, only set on resolve after acknowledge

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    patient = relationship("Patient", back_populates="emergency_alerts")
    assigned_doctor = relationship("HealthWorker", foreign_keys=[assigned_doctor_id])
    assigned_vhv = relationship("HealthWorker", foreign_keys=[assigned_vhv_id])

    @property
    def patient_name(self) -> str:
        return self.patient.full_name if self.patient else ""
