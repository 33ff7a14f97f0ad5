from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from ..database import Base

class AssignmentStatus(enum.Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

#Links one patient to the VHV visiting them and the supervising doctor
class Assignment(Base):
    __tablename__ = "assignments"
    #re-assigning the same patient to the same VHV updates the existing row
    __table_args__ = (UniqueConstraint("patient_id", "vhv_id", name="uq_assignment_patient_vhv"),)

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    vhv_id = Column(Integer, ForeignKey("health_workers.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("health_workers.id"), nullable=False, index=True)
    status = Column(Enum(AssignmentStatus), default=AssignmentStatus.ACTIVE, nullable=False)
    assigned_at = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    patient = relationship("Patient", back_populates="assignments")
    vhv = relationship("HealthWorker", foreign_keys=[vhv_id])
    doctor = relationship("HealthWorker", foreign_keys=[doctor_id])
