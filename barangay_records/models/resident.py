import uuid
from datetime import date

from sqlalchemy import Column, String, Boolean, Date, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from ..utils.date_helpers import DateHelpers


def _new_id() -> str:
    return str(uuid.uuid4())


class Resident(Base):
    __tablename__ = "residents"

    id = Column(String(36), primary_key=True, default=_new_id)

    # Personal information
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100))
    last_name = Column(String(100), nullable=False)
    extension_name = Column(String(20))
    birthdate = Column(Date, nullable=False)
    birth_place = Column(String(200))
    sex = Column(String(10), nullable=False)
    civil_status = Column(String(20), default="single")
    citizenship = Column(String(50), default="filipino")

    # Education and employment
    education_attainment = Column(String(30))
    is_graduate = Column(Boolean, default=False, nullable=False)
    employment_status = Column(String(30), default="not_in_labor_force")
    psoc_code = Column(String(10), ForeignKey("psoc_unit_groups.code"))
    occupation_title = Column(String(200))

    # Contact
    mobile_number = Column(String(20))
    email = Column(String(255))

    # Household and location
    household_code = Column(String(50), ForeignKey("households.code"))
    barangay_code = Column(
        String(10), ForeignKey("psgc_barangays.code"), nullable=False
    )
    city_municipality_code = Column(String(10))
    province_code = Column(String(10))
    region_code = Column(String(10))

    # Position in the household relative to its head
    family_position = Column(String(30))

    is_active = Column(Boolean, default=True, nullable=False)

    # Derived from birthdate, employment and education
    is_labor_force = Column(Boolean, default=False)
    is_employed = Column(Boolean, default=False)
    is_unemployed = Column(Boolean, default=False)
    is_senior_citizen = Column(Boolean, default=False)
    is_out_of_school_children = Column(Boolean, default=False)
    is_out_of_school_youth = Column(Boolean, default=False)

    # Declared by the encoder
    is_overseas_filipino_worker = Column(Boolean, default=False)
    is_person_with_disability = Column(Boolean, default=False)
    is_registered_senior_citizen = Column(Boolean, default=False)
    is_solo_parent = Column(Boolean, default=False)
    is_indigenous_people = Column(Boolean, default=False)
    is_migrant = Column(Boolean, default=False)
    is_registered_voter = Column(Boolean, default=False)

    created_by = Column(String(36))
    updated_by = Column(String(36))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    household = relationship(
        "Household", back_populates="residents", foreign_keys=[household_code]
    )

    __table_args__ = (
        Index("idx_residents_household_active", "household_code", "is_active"),
        Index("idx_residents_barangay_active", "barangay_code", "is_active"),
        Index("idx_residents_name", "last_name", "first_name"),
    )

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name, self.extension_name]
        return " ".join(p for p in parts if p)

    def age(self, today: date = None) -> int:
        return DateHelpers.age_on(self.birthdate, today)

    def to_dict(self):
        return {
            "id": self.id,
            "first_name": self.first_name,
            "middle_name": self.middle_name,
            "last_name": self.last_name,
            "extension_name": self.extension_name,
            "full_name": self.full_name,
            "birthdate": self.birthdate.isoformat() if self.birthdate else None,
            "age": self.age() if self.birthdate else None,
            "birth_place": self.birth_place,
            "sex": self.sex,
            "civil_status": self.civil_status,
            "citizenship": self.citizenship,
            "education_attainment": self.education_attainment,
            "is_graduate": self.is_graduate,
            "employment_status": self.employment_status,
            "psoc_code": self.psoc_code,
            "occupation_title": self.occupation_title,
            "mobile_number": self.mobile_number,
            "email": self.email,
            "household_code": self.household_code,
            "family_position": self.family_position,
            "barangay_code": self.barangay_code,
            "city_municipality_code": self.city_municipality_code,
            "province_code": self.province_code,
            "region_code": self.region_code,
            "is_active": self.is_active,
            "sectoral": {
                "is_labor_force": self.is_labor_force,
                "is_employed": self.is_employed,
                "is_unemployed": self.is_unemployed,
                "is_senior_citizen": self.is_senior_citizen,
                "is_out_of_school_children": self.is_out_of_school_children,
                "is_out_of_school_youth": self.is_out_of_school_youth,
                "is_overseas_filipino_worker": self.is_overseas_filipino_worker,
                "is_person_with_disability": self.is_person_with_disability,
                "is_registered_senior_citizen": self.is_registered_senior_citizen,
                "is_solo_parent": self.is_solo_parent,
                "is_indigenous_people": self.is_indigenous_people,
                "is_migrant": self.is_migrant,
                "is_registered_voter": self.is_registered_voter,
            },
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
