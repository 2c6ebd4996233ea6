from .geography import (
    Region,
    Province,
    CityMunicipality,
    Barangay,
    PsocMajorGroup,
    PsocUnitGroup,
)
from .user_profile import UserProfile
from .household import Household, HouseholdCodeSequence
from .resident import Resident
from .migrant_information import MigrantInformation
from .resident_relationship import ResidentRelationship
from .dashboard_summary import BarangayDashboardSummary
from .audit_log import AuditLog


__all__ = [
    "Region",
    "Province",
    "CityMunicipality",
    "Barangay",
    "PsocMajorGroup",
    "PsocUnitGroup",
    "UserProfile",
    "Household",
    "HouseholdCodeSequence",
    "Resident",
    "MigrantInformation",
    "ResidentRelationship",
    "BarangayDashboardSummary",
    "AuditLog",
]
