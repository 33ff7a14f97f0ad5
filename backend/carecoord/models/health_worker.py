#Define table columns and types.
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum
#Provides database functions for timestamps
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from ..database import Base

#Doctors supervise, VHVs collect data in the field
class HealthWorkerType(enum.Enum):
    DOCTOR = "DOCTOR"
    VHV = "VHV"

class HealthWorker(Base):
    __tablename__ = "health_workers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    type = Column(Enum(HealthWorkerType), nullable=False, index=True)
    license_number = Column(String, unique=True, nullable=False)
    specialization = Column(String)
    hospital_affiliation = Column(String)
    region = Column(String)  # VHV catchment area
    training_level = Column(String)
    experience_years = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="health_worker")

    @property
    def full_name(self) -> str:
        return self.user.full_name if self.user else ""
