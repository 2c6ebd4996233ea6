from sqlalchemy import Column, Integer, String, DateTime, JSON, Index
from sqlalchemy.sql import func
from ..database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    table_name = Column(String(50), nullable=False)
    record_id = Column(String(50), nullable=False)
    operation = Column(String(10), nullable=False)
    old_values = Column(JSON)
    new_values = Column(JSON)
    user_id = Column(String(36))
    barangay_code = Column(String(10))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_audit_logs_record", "table_name", "record_id"),
        Index("idx_audit_logs_barangay", "barangay_code"),
    )
