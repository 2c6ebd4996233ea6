from pydantic import BaseModel, Field, field_validator
from typing import Optional
from decimal import Decimal
from ..models.enums import HouseholdType, TenureStatus
from ..utils.validation import ValidationHelpers


class HouseholdBase(BaseModel):
    house_number: Optional[str] = Field(None, max_length=50)
    street_name: Optional[str] = Field(None, max_length=100)
    subdivision: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=10)
    household_type: Optional[HouseholdType] = None
    tenure_status: Optional[TenureStatus] = None
    tenure_others_specify: Optional[str] = Field(None, max_length=200)
    monthly_income: Optional[Decimal] = Field(None, ge=0)


class HouseholdCreate(HouseholdBase):
    # Generated when omitted
    code: Optional[str] = Field(None, max_length=50)
    # Defaults to the creating user's barangay
    barangay_code: Optional[str] = Field(None, max_length=10)

    @field_validator("code")
    @classmethod
    def household_code_format(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not ValidationHelpers.validate_household_code(value):
            raise ValueError("Household code must look like RRPPMMBBB-SSSS-TTTT-HHHH")
        return value

    @field_validator("barangay_code")
    @classmethod
    def barangay_code_format(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not ValidationHelpers.validate_barangay_code(value):
            raise ValueError("Barangay code must be a 9 or 10 digit PSGC code")
        return value


class HouseholdUpdate(HouseholdBase):
    """Address and profile only; barangay and member count are not writable"""

    pass


class HouseholdHeadUpdate(BaseModel):
    resident_id: Optional[str] = Field(None, max_length=36)
