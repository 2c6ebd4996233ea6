from .access_scope import BarangayScope
from .audit_service import AuditService
from .dashboard_service import DashboardRefresher, DashboardService
from .geography_service import GeographyService
from .household_service import HouseholdService
from .membership_service import HouseholdMembershipMaintainer, ResidentMutationEvent
from .migration_service import MigrationInfoService
from .relationship_service import RelationshipService
from .resident_service import ResidentService
from .user_service import UserService

__all__ = [
    "BarangayScope",
    "AuditService",
    "DashboardRefresher",
    "DashboardService",
    "GeographyService",
    "HouseholdService",
    "HouseholdMembershipMaintainer",
    "ResidentMutationEvent",
    "MigrationInfoService",
    "RelationshipService",
    "ResidentService",
    "UserService",
]
