from sqlalchemy.orm import Session
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from ..models.audit_log import AuditLog
from ..models.enums import AuditOperation


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return getattr(value, "value", value)


def snapshot(instance) -> Dict[str, Any]:
    """Column values of a mapped instance, JSON friendly"""
    return {
        column.key: _jsonable(getattr(instance, column.key))
        for column in instance.__table__.columns
    }


class AuditService:
    """Appends audit rows to the caller's transaction; never commits"""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        table_name: str,
        record_id: str,
        operation: AuditOperation,
        barangay_code: Optional[str],
        user_id: Optional[str] = None,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        entry = AuditLog(
            table_name=table_name,
            record_id=str(record_id),
            operation=operation.value,
            old_values=old_values,
            new_values=new_values,
            user_id=user_id,
            barangay_code=barangay_code,
        )
        self.db.add(entry)
        return entry

    def was_deleted(self, table_name: str, record_id: str) -> bool:
        return (
            self.db.query(AuditLog.id)
            .filter(
                AuditLog.table_name == table_name,
                AuditLog.record_id == str(record_id),
                AuditLog.operation == AuditOperation.DELETE.value,
            )
            .first()
            is not None
        )
