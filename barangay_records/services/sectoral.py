"""Derived classifications for residents and households.

Sectoral flags follow the barangay profiling rules: labor force membership
from employment status, senior citizens by age, and out-of-school children
and youth from age, graduation and employment. Income class follows the
PSA monthly household income brackets.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, Optional, Union

from ..models.enums import EducationLevel, EmploymentStatus, IncomeClass
from ..utils.constants import AppConstants, IncomeBrackets
from ..utils.date_helpers import DateHelpers

LABOR_FORCE_STATUSES = {
    EmploymentStatus.EMPLOYED.value,
    EmploymentStatus.SELF_EMPLOYED.value,
    EmploymentStatus.UNEMPLOYED.value,
    EmploymentStatus.LOOKING_FOR_WORK.value,
    EmploymentStatus.UNDEREMPLOYED.value,
}

EMPLOYED_STATUSES = {
    EmploymentStatus.EMPLOYED.value,
    EmploymentStatus.SELF_EMPLOYED.value,
}

UNEMPLOYED_STATUSES = {
    EmploymentStatus.UNEMPLOYED.value,
    EmploymentStatus.LOOKING_FOR_WORK.value,
}

HIGHER_EDUCATION = {
    EducationLevel.COLLEGE.value,
    EducationLevel.POST_GRADUATE.value,
}

INCOME_CLASS_FLOORS = (
    (IncomeBrackets.RICH, IncomeClass.RICH),
    (IncomeBrackets.HIGH_INCOME, IncomeClass.HIGH_INCOME),
    (IncomeBrackets.UPPER_MIDDLE_INCOME, IncomeClass.UPPER_MIDDLE_INCOME),
    (IncomeBrackets.MIDDLE_INCOME, IncomeClass.MIDDLE_INCOME),
    (IncomeBrackets.LOWER_MIDDLE_INCOME, IncomeClass.LOWER_MIDDLE_INCOME),
    (IncomeBrackets.LOW_INCOME, IncomeClass.LOW_INCOME),
)


def _value(enum_or_str) -> Optional[str]:
    return getattr(enum_or_str, "value", enum_or_str)


def derive_sectoral_flags(
    birthdate: date,
    employment_status: Optional[str],
    education_attainment: Optional[str],
    is_graduate: bool,
    today: Optional[date] = None,
) -> Dict[str, bool]:
    age = DateHelpers.age_on(birthdate, today)
    employment = _value(employment_status)
    education = _value(education_attainment)
    is_employed = employment in EMPLOYED_STATUSES

    return {
        "is_labor_force": employment in LABOR_FORCE_STATUSES,
        "is_employed": is_employed,
        "is_unemployed": employment in UNEMPLOYED_STATUSES,
        "is_senior_citizen": age >= AppConstants.SENIOR_CITIZEN_AGE,
        "is_out_of_school_children": (
            AppConstants.OSC_MIN_AGE <= age <= AppConstants.OSC_MAX_AGE
            and not is_graduate
        ),
        "is_out_of_school_youth": (
            AppConstants.OSY_MIN_AGE <= age <= AppConstants.OSY_MAX_AGE
            and not is_graduate
            and education not in HIGHER_EDUCATION
            and not is_employed
        ),
    }


def apply_sectoral_flags(resident, today: Optional[date] = None) -> None:
    flags = derive_sectoral_flags(
        resident.birthdate,
        resident.employment_status,
        resident.education_attainment,
        bool(resident.is_graduate),
        today,
    )
    for name, value in flags.items():
        setattr(resident, name, value)


def classify_income(monthly_income: Union[Decimal, float, None]) -> IncomeClass:
    if monthly_income is None:
        return IncomeClass.NOT_DETERMINED

    for floor, income_class in INCOME_CLASS_FLOORS:
        if monthly_income >= floor:
            return income_class
    return IncomeClass.POOR
