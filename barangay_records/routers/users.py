from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, Any
from ..database import get_db
from ..models.user_profile import UserProfile
from ..services.access_scope import BarangayScope
from ..services.user_service import UserService
from ..schemas.user import RoleUpdate, StatusUpdate
from ..dependencies.permissions import (
    get_current_profile,
    get_barangay_scope,
    require_barangay_admin,
)
from ..utils.router_helpers import handle_service_errors, RouterResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=Dict[str, Any])
@handle_service_errors
async def get_my_profile(profile: UserProfile = Depends(get_current_profile)):
    return RouterResponse.success(data={"profile": profile.to_dict()})


@router.get("/", response_model=Dict[str, Any])
@handle_service_errors
async def list_profiles(
    include_inactive: bool = Query(True),
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    """Profiles visible to the caller's jurisdiction"""
    profiles = UserService(db).list_profiles(scope, include_inactive=include_inactive)
    return RouterResponse.success(
        data={"profiles": profiles, "total_count": len(profiles)}
    )


@router.put("/{profile_id}/role", response_model=Dict[str, Any])
@handle_service_errors
async def update_role(
    profile_id: str,
    role_update: RoleUpdate,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(require_barangay_admin),
):
    profile = UserService(db).update_role(scope, profile_id, role_update.role)
    return RouterResponse.updated(
        data={"profile": profile.to_dict()}, message="Role updated successfully"
    )


@router.put("/{profile_id}/status", response_model=Dict[str, Any])
@handle_service_errors
async def update_status(
    profile_id: str,
    status_update: StatusUpdate,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(require_barangay_admin),
):
    profile = UserService(db).set_active(scope, profile_id, status_update.is_active)
    state = "activated" if profile.is_active else "deactivated"
    return RouterResponse.updated(
        data={"profile": profile.to_dict()}, message=f"Profile {state}"
    )
