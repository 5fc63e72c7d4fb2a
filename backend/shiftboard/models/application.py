from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import Base
from .status import ApplicationStatus, status_column_type


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("candidate_id", "job_id", name="uq_applications_candidate_job"),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    candidate_id = Column(String(64), nullable=False, index=True)
    # Copied from the job at intake so tenant filters don't always need the join.
    organization_id = Column(String(36), nullable=False, index=True)
    status = Column(status_column_type(), nullable=False, default=ApplicationStatus.APPLIED)

    cover_letter = Column(Text, nullable=True)
    cv_url = Column(String(500), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    applied_at = Column(DateTime(timezone=True), nullable=False)
    # Stage timestamps: written the first time the stage is entered, never overwritten.
    screened_at = Column(DateTime(timezone=True), nullable=True)
    interviewed_at = Column(DateTime(timezone=True), nullable=True)
    pre_hire_checks_started_at = Column(DateTime(timezone=True), nullable=True)
    hired_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    withdrawn_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    # Optimistic concurrency token; SQLAlchemy adds it to the UPDATE's WHERE clause.
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    job = relationship("Job", back_populates="applications")
    status_history = relationship(
        "ApplicationStatusHistory",
        back_populates="application",
        order_by="ApplicationStatusHistory.id",
    )
    pre_hire_confirmations = relationship("PreHireConfirmation", back_populates="application")
