#Define table columns and types.
from sqlalchemy import Column, Integer, String, Date, Text, DateTime, ForeignKey, Enum, Boolean
#Provides database functions for timestamps
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
#to define controlled value sets.
import enum
from ..database import Base

class Gender(enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"
    PREFER_NOT_TO_SAY = "PREFER_NOT_TO_SAY"

class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    #set when the patient has a login of their own
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=True)
    national_id = Column(String, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    dob = Column(Date)
    gender = Column(Enum(Gender))
    email = Column(String, index=True)
    phone = Column(String)
    address = Column(Text)
    emergency_contact_name = Column(String)
    emergency_contact_phone = Column(String)
    medical_history = Column(Text)
    allergies = Column(Text)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="patient_profile")
    assignments = relationship("Assignment", back_populates="patient")
    intakes = relationship("IntakeSubmission", back_populates="patient")
    emergency_alerts = relationship("EmergencyAlert", back_populates="patient")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
