import uuid

from sqlalchemy import (
    Column,
    String,
    Text,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from ..database import Base
from .enums import RelationshipType


class ResidentRelationship(Base):
    """Family tie stated from resident A's side: B is A's `relationship_type`"""

    __tablename__ = "resident_relationships"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    resident_a_id = Column(
        String(36), ForeignKey("residents.id", ondelete="CASCADE"), nullable=False
    )
    resident_b_id = Column(
        String(36), ForeignKey("residents.id", ondelete="CASCADE"), nullable=False
    )
    barangay_code = Column(
        String(10), ForeignKey("psgc_barangays.code"), nullable=False
    )

    relationship_type = Column(String(20), nullable=False)
    relationship_description = Column(Text)
    is_reciprocal = Column(Boolean, default=True, nullable=False)
    start_date = Column(Date)
    end_date = Column(Date)

    created_by = Column(String(36))
    updated_by = Column(String(36))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("resident_a_id != resident_b_id", name="no_self_relationship"),
        CheckConstraint(
            "end_date IS NULL OR start_date IS NULL OR end_date >= start_date",
            name="ck_relationship_dates",
        ),
        UniqueConstraint(
            "resident_a_id",
            "resident_b_id",
            "relationship_type",
            name="unique_relationship",
        ),
        Index("idx_relationships_resident_b", "resident_b_id"),
    )

    def involves(self, resident_id: str) -> bool:
        return resident_id in (self.resident_a_id, self.resident_b_id)

    def to_dict(self, viewer_id: str = None):
        """Serialize; with `viewer_id`, describe the other resident from the viewer's side"""
        data = {
            "id": self.id,
            "resident_a_id": self.resident_a_id,
            "resident_b_id": self.resident_b_id,
            "relationship_type": self.relationship_type,
            "relationship_description": self.relationship_description,
            "is_reciprocal": self.is_reciprocal,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }
        if viewer_id == self.resident_b_id:
            data["related_resident_id"] = self.resident_a_id
            data["relationship_type"] = RelationshipType(self.relationship_type).inverse.value
        elif viewer_id == self.resident_a_id:
            data["related_resident_id"] = self.resident_b_id
        return data
