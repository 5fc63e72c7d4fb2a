from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from ..database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(100), nullable=False)
    entity_type = Column(String(100), nullable=False)
    entity_id = Column(String(64), nullable=True)
    user_id = Column(String(64), nullable=True)
    organization_id = Column(String(36), nullable=True)
    details = Column(Text, nullable=True)  # JSON object
    timestamp = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_audit_logs_org_time", "organization_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AuditLog(action={self.action}, entity={self.entity_type}:{self.entity_id})>"
