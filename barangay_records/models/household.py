from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Numeric,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Household(Base):
    __tablename__ = "households"

    # Hierarchical format: RRPPMMBBB-SSSS-TTTT-HHHH
    code = Column(String(50), primary_key=True)

    # Geographic location (PSGC codes); barangay is fixed after creation
    barangay_code = Column(
        String(10), ForeignKey("psgc_barangays.code"), nullable=False
    )
    city_municipality_code = Column(String(10))
    province_code = Column(String(10))  # NULL for independent cities
    region_code = Column(String(10))

    # Cached display names
    barangay_name = Column(String(100))
    city_name = Column(String(200))
    province_name = Column(String(100))
    region_name = Column(String(100))

    # Address
    house_number = Column(String(50))
    street_name = Column(String(100))
    subdivision = Column(String(100))
    zip_code = Column(String(10))

    # Profile
    household_type = Column(String(30))
    tenure_status = Column(String(40))
    tenure_others_specify = Column(String(200))
    monthly_income = Column(Numeric(12, 2))
    income_class = Column(String(30))

    # Maintained by HouseholdMembershipMaintainer only
    total_members = Column(Integer, nullable=False, default=0)

    household_head_id = Column(
        String(36),
        ForeignKey("residents.id", use_alter=True, name="fk_households_head"),
        nullable=True,
    )

    created_by = Column(String(36))
    updated_by = Column(String(36))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    residents = relationship(
        "Resident",
        back_populates="household",
        foreign_keys="Resident.household_code",
    )

    __table_args__ = (
        Index("idx_households_barangay", "barangay_code"),
        CheckConstraint("total_members >= 0", name="ck_households_total_members"),
    )

    @property
    def address(self) -> str:
        parts = [
            self.house_number,
            self.street_name,
            self.subdivision,
            self.barangay_name,
            self.city_name,
            self.province_name,
        ]
        return ", ".join(p for p in parts if p)

    def to_dict(self):
        return {
            "code": self.code,
            "barangay_code": self.barangay_code,
            "city_municipality_code": self.city_municipality_code,
            "province_code": self.province_code,
            "region_code": self.region_code,
            "barangay_name": self.barangay_name,
            "city_name": self.city_name,
            "province_name": self.province_name,
            "region_name": self.region_name,
            "house_number": self.house_number,
            "street_name": self.street_name,
            "subdivision": self.subdivision,
            "zip_code": self.zip_code,
            "address": self.address,
            "household_type": self.household_type,
            "tenure_status": self.tenure_status,
            "monthly_income": (
                float(self.monthly_income) if self.monthly_income is not None else None
            ),
            "income_class": self.income_class,
            "total_members": self.total_members,
            "household_head_id": self.household_head_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class HouseholdCodeSequence(Base):
    """Last issued household number per barangay; never decremented"""

    __tablename__ = "household_code_sequences"

    barangay_code = Column(
        String(10), ForeignKey("psgc_barangays.code"), primary_key=True
    )
    last_value = Column(Integer, nullable=False, default=0)
