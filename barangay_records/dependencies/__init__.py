from .permissions import (
    get_current_profile,
    get_barangay_scope,
    require_barangay_admin,
    require_super_admin,
)

__all__ = [
    "get_current_profile",
    "get_barangay_scope",
    "require_barangay_admin",
    "require_super_admin",
]
