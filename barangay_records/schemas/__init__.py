from .common import PaginationInfo, PaginationParams, paginate
from .household import (
    HouseholdCreate,
    HouseholdUpdate,
    HouseholdHeadUpdate,
)
from .resident import (
    ResidentCreate,
    ResidentUpdate,
    HouseholdReassignment,
    ResidentReactivation,
    MigrationInfoUpdate,
    RelationshipCreate,
)
from .user import RoleUpdate, StatusUpdate

__all__ = [
    "PaginationInfo",
    "PaginationParams",
    "paginate",
    "HouseholdCreate",
    "HouseholdUpdate",
    "HouseholdHeadUpdate",
    "ResidentCreate",
    "ResidentUpdate",
    "HouseholdReassignment",
    "ResidentReactivation",
    "MigrationInfoUpdate",
    "RelationshipCreate",
    "RoleUpdate",
    "StatusUpdate",
]
