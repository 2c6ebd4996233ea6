from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from datetime import date
from ..models.enums import (
    Sex,
    CivilStatus,
    EducationLevel,
    EmploymentStatus,
    FamilyPosition,
    RelationshipType,
)
from ..utils.validation import ValidationHelpers


class SectoralDeclarations(BaseModel):
    """Sectoral memberships declared by the encoder"""

    is_overseas_filipino_worker: bool = False
    is_person_with_disability: bool = False
    is_registered_senior_citizen: bool = False
    is_solo_parent: bool = False
    is_indigenous_people: bool = False
    is_migrant: bool = False
    is_registered_voter: bool = False


class ResidentBase(SectoralDeclarations):
    first_name: str = Field(..., min_length=1, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    extension_name: Optional[str] = Field(None, max_length=20)
    birthdate: date
    birth_place: Optional[str] = Field(None, max_length=200)
    sex: Sex
    civil_status: CivilStatus = CivilStatus.SINGLE
    citizenship: str = Field("filipino", max_length=50)
    education_attainment: Optional[EducationLevel] = None
    is_graduate: bool = False
    employment_status: EmploymentStatus = EmploymentStatus.NOT_IN_LABOR_FORCE
    psoc_code: Optional[str] = Field(None, max_length=10)
    occupation_title: Optional[str] = Field(None, max_length=200)
    mobile_number: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, pattern=r"^[^@]+@[^@]+\.[^@]+$")

    @field_validator("birthdate")
    @classmethod
    def birthdate_in_range(cls, value: date) -> date:
        if not ValidationHelpers.validate_birthdate(value):
            raise ValueError("Birthdate must not be in the future")
        return value

    @field_validator("mobile_number")
    @classmethod
    def mobile_number_format(cls, value: Optional[str]) -> Optional[str]:
        if not ValidationHelpers.validate_mobile_number(value):
            raise ValueError("Mobile number must look like 09XXXXXXXXX")
        return value


class ResidentCreate(ResidentBase):
    household_code: Optional[str] = Field(None, max_length=50)
    family_position: Optional[FamilyPosition] = None
    # Defaults to the household's barangay, then the user's
    barangay_code: Optional[str] = Field(None, max_length=10)

    @field_validator("barangay_code")
    @classmethod
    def barangay_code_format(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not ValidationHelpers.validate_barangay_code(value):
            raise ValueError("Barangay code must be a 9 or 10 digit PSGC code")
        return value


class ResidentUpdate(BaseModel):
    """Partial update; household moves use the reassignment endpoint"""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    extension_name: Optional[str] = Field(None, max_length=20)
    birthdate: Optional[date] = None
    birth_place: Optional[str] = Field(None, max_length=200)
    sex: Optional[Sex] = None
    civil_status: Optional[CivilStatus] = None
    citizenship: Optional[str] = Field(None, max_length=50)
    education_attainment: Optional[EducationLevel] = None
    is_graduate: Optional[bool] = None
    employment_status: Optional[EmploymentStatus] = None
    psoc_code: Optional[str] = Field(None, max_length=10)
    occupation_title: Optional[str] = Field(None, max_length=200)
    mobile_number: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, pattern=r"^[^@]+@[^@]+\.[^@]+$")
    family_position: Optional[FamilyPosition] = None
    is_overseas_filipino_worker: Optional[bool] = None
    is_person_with_disability: Optional[bool] = None
    is_registered_senior_citizen: Optional[bool] = None
    is_solo_parent: Optional[bool] = None
    is_indigenous_people: Optional[bool] = None
    is_migrant: Optional[bool] = None
    is_registered_voter: Optional[bool] = None

    @field_validator("birthdate")
    @classmethod
    def birthdate_in_range(cls, value: Optional[date]) -> Optional[date]:
        if value is not None and not ValidationHelpers.validate_birthdate(value):
            raise ValueError("Birthdate must not be in the future")
        return value


class HouseholdReassignment(BaseModel):
    # None removes the resident from any household
    household_code: Optional[str] = Field(None, max_length=50)


class ResidentReactivation(BaseModel):
    household_code: Optional[str] = Field(None, max_length=50)



class MigrationInfoUpdate(BaseModel):
    """Previous residence of a migrant; higher PSGC levels are filled in when omitted"""

    previous_barangay_code: Optional[str] = Field(None, max_length=10)
    previous_city_municipality_code: Optional[str] = Field(None, max_length=10)
    previous_province_code: Optional[str] = Field(None, max_length=10)
    previous_region_code: Optional[str] = Field(None, max_length=10)
    date_of_transfer: Optional[date] = None
    reason_for_leaving: Optional[str] = Field(None, max_length=500)
    reason_for_transferring: Optional[str] = Field(None, max_length=500)
    length_of_stay_previous_months: Optional[int] = Field(None, ge=0)
    duration_of_stay_current_months: Optional[int] = Field(None, ge=0)
    is_intending_to_return: Optional[bool] = None

    @field_validator("date_of_transfer")
    @classmethod
    def transfer_not_in_future(cls, value: Optional[date]) -> Optional[date]:
        if value is not None and value > date.today():
            raise ValueError("Date of transfer must not be in the future")
        return value


class RelationshipCreate(BaseModel):
    # The related resident is this to the resident in the path
    related_resident_id: str = Field(..., min_length=1, max_length=36)
    relationship_type: RelationshipType
    relationship_description: Optional[str] = Field(None, max_length=500)
    is_reciprocal: bool = True
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def dates_in_order(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self
