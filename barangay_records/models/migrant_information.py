import uuid

from sqlalchemy import (
    Column,
    String,
    Integer,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    CheckConstraint,
)
from sqlalchemy.sql import func
from ..database import Base


class MigrantInformation(Base):
    """Where a migrant resident lived before, one row per resident"""

    __tablename__ = "migrant_information"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    resident_id = Column(
        String(36),
        ForeignKey("residents.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    # Copied from the resident for scoping
    barangay_code = Column(
        String(10), ForeignKey("psgc_barangays.code"), nullable=False
    )

    # Previous location
    previous_barangay_code = Column(String(10), ForeignKey("psgc_barangays.code"))
    previous_city_municipality_code = Column(
        String(10), ForeignKey("psgc_cities_municipalities.code")
    )
    previous_province_code = Column(String(10), ForeignKey("psgc_provinces.code"))
    previous_region_code = Column(String(10), ForeignKey("psgc_regions.code"))

    # Migration details
    date_of_transfer = Column(Date)
    reason_for_leaving = Column(String(500))
    reason_for_transferring = Column(String(500))
    length_of_stay_previous_months = Column(Integer)
    duration_of_stay_current_months = Column(Integer)
    is_intending_to_return = Column(Boolean)

    created_by = Column(String(36))
    updated_by = Column(String(36))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "length_of_stay_previous_months IS NULL OR length_of_stay_previous_months >= 0",
            name="ck_migrant_previous_stay_non_negative",
        ),
        CheckConstraint(
            "duration_of_stay_current_months IS NULL OR duration_of_stay_current_months >= 0",
            name="ck_migrant_current_stay_non_negative",
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "resident_id": self.resident_id,
            "previous_barangay_code": self.previous_barangay_code,
            "previous_city_municipality_code": self.previous_city_municipality_code,
            "previous_province_code": self.previous_province_code,
            "previous_region_code": self.previous_region_code,
            "date_of_transfer": (
                self.date_of_transfer.isoformat() if self.date_of_transfer else None
            ),
            "reason_for_leaving": self.reason_for_leaving,
            "reason_for_transferring": self.reason_for_transferring,
            "length_of_stay_previous_months": self.length_of_stay_previous_months,
            "duration_of_stay_current_months": self.duration_of_stay_current_months,
            "is_intending_to_return": self.is_intending_to_return,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
