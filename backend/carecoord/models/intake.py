#Define table columns and types.
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum, JSON
#Provides database functions for timestamps
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from ..database import Base

class IntakeStatus(enum.Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    REJECTED = "REJECTED"

class ReviewActionType(enum.Enum):
    APPROVE = "APPROVE"
    REQUEST_CHANGES = "REQUEST_CHANGES"
    REJECT = "REJECT"

#Structured visit data collected by a VHV, reviewed by a doctor
class IntakeSubmission(Base):
    __tablename__ = "intake_submissions"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    vhv_id = Column(Integer, ForeignKey("health_workers.id"), nullable=True, index=True)
    status = Column(Enum(IntakeStatus), default=IntakeStatus.DRAFT, nullable=False, index=True)
    payload = Column(JSON, nullable=False)  # visitMeta, patientBasics, symptoms, vitals, ...
    attachments = Column(JSON, nullable=False, default=list)
    submitted_at = Column(DateTime(timezone=True))
    reviewed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    patient = relationship("Patient", back_populates="intakes")
    vhv = relationship("HealthWorker")
    review_actions = relationship(
        "ReviewAction", back_populates="submission", order_by="ReviewAction.id"
    )

#One row per doctor decision on a submission
class ReviewAction(Base):
    __tablename__ = "review_actions"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(Integer, ForeignKey("intake_submissions.id"), nullable=False, index=True)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    action = Column(Enum(ReviewActionType), nullable=False)
    comment = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    submission = relationship("IntakeSubmission", back_populates="review_actions")
    reviewer = relationship("User")
