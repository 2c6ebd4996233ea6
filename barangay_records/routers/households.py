from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Dict, Any, Optional
from ..database import get_db
from ..services.access_scope import BarangayScope
from ..services.household_service import HouseholdService
from ..schemas.common import PaginationParams
from ..schemas.household import (
    HouseholdCreate,
    HouseholdUpdate,
    HouseholdHeadUpdate,
)
from ..dependencies.permissions import (
    get_barangay_scope,
    require_barangay_admin,
    require_super_admin,
)
from ..utils.constants import AppConstants, Messages
from ..utils.router_helpers import (
    handle_service_errors,
    RouterResponse,
)

router = APIRouter(prefix="/households", tags=["households"])


@router.post("/", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
@handle_service_errors
async def create_household(
    household_data: HouseholdCreate,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    """Register a household; the code is generated when not supplied"""
    household = HouseholdService(db, scope).create_household(household_data)

    return RouterResponse.created(
        data={"household": household.to_dict()},
        message="Household created successfully",
    )


@router.get("/", response_model=Dict[str, Any])
@handle_service_errors
async def list_households(
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(
        AppConstants.DEFAULT_PAGE_SIZE, ge=1, le=AppConstants.MAX_PAGE_SIZE
    ),
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    result = HouseholdService(db, scope).list_households(
        search=search, pagination=PaginationParams(page=page, page_size=page_size)
    )

    return RouterResponse.success(
        data={
            "households": result["items"],
            "pagination": result["pagination"].model_dump(),
        }
    )


@router.post("/recount", response_model=Dict[str, Any])
@handle_service_errors
async def recount_all_households(
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(require_super_admin),
):
    """Repair job: recount members of every household"""
    corrected = HouseholdService(db, scope).recount_all_members()

    return RouterResponse.success(
        data={"corrected": corrected, "corrected_count": len(corrected)},
        message=Messages.HOUSEHOLD_RECOUNTED,
    )


@router.get("/{code}", response_model=Dict[str, Any])
@handle_service_errors
async def get_household(
    code: str,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    household = HouseholdService(db, scope).get_household(code)
    return RouterResponse.success(data={"household": household.to_dict()})


@router.put("/{code}", response_model=Dict[str, Any])
@handle_service_errors
async def update_household(
    code: str,
    household_update: HouseholdUpdate,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    household = HouseholdService(db, scope).update_household(code, household_update)

    return RouterResponse.updated(
        data={"household": household.to_dict()},
        message="Household updated successfully",
    )


@router.put("/{code}/head", response_model=Dict[str, Any])
@handle_service_errors
async def set_household_head(
    code: str,
    head_update: HouseholdHeadUpdate,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    household = HouseholdService(db, scope).set_household_head(
        code, head_update.resident_id
    )

    return RouterResponse.updated(
        data={"household": household.to_dict()},
        message="Household head updated",
    )


@router.get("/{code}/members", response_model=Dict[str, Any])
@handle_service_errors
async def get_household_members(
    code: str,
    include_inactive: bool = Query(False, description="Include deactivated residents"),
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    members = HouseholdService(db, scope).get_household_members(
        code, include_inactive=include_inactive
    )

    return RouterResponse.success(
        data={
            "members": [member.to_dict() for member in members],
            "total_count": len(members),
            "active_count": len([m for m in members if m.is_active]),
        }
    )


@router.delete("/{code}", response_model=Dict[str, Any])
@handle_service_errors
async def delete_household(
    code: str,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(require_barangay_admin),
):
    """Delete an empty household; its code is never issued again"""
    HouseholdService(db, scope).delete_household(code)
    return RouterResponse.deleted(message="Household deleted successfully")


@router.post("/{code}/recount", response_model=Dict[str, Any])
@handle_service_errors
async def recount_household(
    code: str,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(require_barangay_admin),
):
    household = HouseholdService(db, scope).recount_members(code)

    return RouterResponse.success(
        data={"household": household.to_dict()},
        message=Messages.HOUSEHOLD_RECOUNTED,
    )
