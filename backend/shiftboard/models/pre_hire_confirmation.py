from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import Base


class PreHireConfirmation(Base):
    """
    Employer confirmation that right-to-work checks were completed.

    Only the flag, the accepted confirmation text and who/when are stored;
    no passport or visa data ever lands here.
    """
    __tablename__ = "pre_hire_confirmations"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("applications.id"), nullable=False, index=True)
    organization_id = Column(String(36), nullable=False, index=True)
    confirmed_by_user_id = Column(String(64), nullable=False)
    right_to_work_confirmed = Column(Boolean, nullable=False, default=False)
    confirmation_text = Column(Text, nullable=True)
    confirmation_version = Column(Integer, nullable=False, default=1)
    confirmed_at = Column(DateTime(timezone=True), nullable=False)

    application = relationship("Application", back_populates="pre_hire_confirmations")
