from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import Base
from .status import status_column_type


class ApplicationStatusHistory(Base):
    """Append-only ledger of pipeline transitions. Rows are never updated."""

    __tablename__ = "application_status_history"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("applications.id"), nullable=False, index=True)
    from_status = Column(status_column_type(), nullable=True)  # NULL only for the seed row
    to_status = Column(status_column_type(), nullable=False)
    changed_by_user_id = Column(String(64), nullable=False)
    changed_at = Column(DateTime(timezone=True), nullable=False, index=True)
    notes = Column(Text, nullable=True)

    # Only populated on transitions into Hired
    pre_hire_check_confirmation = Column(Boolean, nullable=True)
    pre_hire_check_confirmation_text = Column(Text, nullable=True)

    # True for the PreHireChecks auto-advance triggered by a pre-hire confirmation
    auto_advanced = Column(Boolean, nullable=False, default=False)

    application = relationship("Application", back_populates="status_history")
