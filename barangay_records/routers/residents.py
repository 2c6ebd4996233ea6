from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Dict, Any, Optional
from ..database import get_db
from ..services.access_scope import BarangayScope
from ..services.resident_service import ResidentService
from ..services.migration_service import MigrationInfoService
from ..services.relationship_service import RelationshipService
from ..schemas.common import PaginationParams
from ..schemas.resident import (
    ResidentCreate,
    ResidentUpdate,
    HouseholdReassignment,
    ResidentReactivation,
    MigrationInfoUpdate,
    RelationshipCreate,
)
from ..dependencies.permissions import get_barangay_scope, require_barangay_admin
from ..utils.constants import AppConstants, Messages
from ..utils.router_helpers import (
    handle_service_errors,
    RouterResponse,
)

router = APIRouter(prefix="/residents", tags=["residents"])


@router.post("/", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
@handle_service_errors
async def create_resident(
    resident_data: ResidentCreate,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    resident = ResidentService(db, scope).create_resident(resident_data)

    return RouterResponse.created(
        data={"resident": resident.to_dict()},
        message="Resident registered successfully",
    )


@router.get("/", response_model=Dict[str, Any])
@handle_service_errors
async def list_residents(
    search: Optional[str] = Query(None, max_length=100),
    household_code: Optional[str] = Query(None, max_length=50),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(
        AppConstants.DEFAULT_PAGE_SIZE, ge=1, le=AppConstants.MAX_PAGE_SIZE
    ),
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    result = ResidentService(db, scope).list_residents(
        search=search,
        household_code=household_code,
        include_inactive=include_inactive,
        pagination=PaginationParams(page=page, page_size=page_size),
    )

    return RouterResponse.success(
        data={
            "residents": result["items"],
            "pagination": result["pagination"].model_dump(),
        }
    )


@router.get("/{resident_id}", response_model=Dict[str, Any])
@handle_service_errors
async def get_resident(
    resident_id: str,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    resident = ResidentService(db, scope).get_resident(resident_id)
    return RouterResponse.success(data={"resident": resident.to_dict()})


@router.put("/{resident_id}", response_model=Dict[str, Any])
@handle_service_errors
async def update_resident(
    resident_id: str,
    resident_update: ResidentUpdate,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    resident = ResidentService(db, scope).update_resident(resident_id, resident_update)

    return RouterResponse.updated(
        data={"resident": resident.to_dict()},
        message="Resident updated successfully",
    )


@router.put("/{resident_id}/household", response_model=Dict[str, Any])
@handle_service_errors
async def reassign_household(
    resident_id: str,
    reassignment: HouseholdReassignment,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    """Move a resident to another household, or out of any household"""
    resident = ResidentService(db, scope).reassign_household(
        resident_id, reassignment.household_code
    )

    return RouterResponse.updated(
        data={"resident": resident.to_dict()},
        message="Resident household updated",
    )


@router.post("/{resident_id}/deactivate", response_model=Dict[str, Any])
@handle_service_errors
async def deactivate_resident(
    resident_id: str,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    resident = ResidentService(db, scope).deactivate_resident(resident_id)

    return RouterResponse.updated(
        data={"resident": resident.to_dict()},
        message=Messages.RESIDENT_DEACTIVATED,
    )


@router.post("/{resident_id}/reactivate", response_model=Dict[str, Any])
@handle_service_errors
async def reactivate_resident(
    resident_id: str,
    reactivation: Optional[ResidentReactivation] = None,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    resident = ResidentService(db, scope).reactivate_resident(
        resident_id,
        household_code=reactivation.household_code if reactivation else None,
    )

    return RouterResponse.updated(
        data={"resident": resident.to_dict()},
        message=Messages.RESIDENT_REACTIVATED,
    )


@router.delete("/{resident_id}", response_model=Dict[str, Any])
@handle_service_errors
async def delete_resident(
    resident_id: str,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(require_barangay_admin),
):
    """Permanent removal; prefer deactivation for residents who moved away"""
    ResidentService(db, scope).delete_resident(resident_id)
    return RouterResponse.deleted(message="Resident deleted successfully")


@router.get("/{resident_id}/migration", response_model=Dict[str, Any])
@handle_service_errors
async def get_migration_info(
    resident_id: str,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    record = MigrationInfoService(db, scope).get_migration_info(resident_id)
    return RouterResponse.success(
        data={"migration_info": record.to_dict() if record else None}
    )


@router.put("/{resident_id}/migration", response_model=Dict[str, Any])
@handle_service_errors
async def update_migration_info(
    resident_id: str,
    migration_data: MigrationInfoUpdate,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    record = MigrationInfoService(db, scope).update_migration_info(
        resident_id, migration_data
    )

    return RouterResponse.updated(
        data={"migration_info": record.to_dict()},
        message="Migration information saved",
    )


@router.get("/{resident_id}/relationships", response_model=Dict[str, Any])
@handle_service_errors
async def list_relationships(
    resident_id: str,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    relationships = RelationshipService(db, scope).list_relationships(resident_id)
    return RouterResponse.success(data={"relationships": relationships})


@router.post(
    "/{resident_id}/relationships",
    response_model=Dict[str, Any],
    status_code=status.HTTP_201_CREATED,
)
@handle_service_errors
async def add_relationship(
    resident_id: str,
    relationship_data: RelationshipCreate,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    relationship = RelationshipService(db, scope).add_relationship(
        resident_id, relationship_data
    )

    return RouterResponse.created(
        data={"relationship": relationship.to_dict(viewer_id=resident_id)},
        message="Relationship recorded",
    )


@router.delete(
    "/{resident_id}/relationships/{relationship_id}", response_model=Dict[str, Any]
)
@handle_service_errors
async def delete_relationship(
    resident_id: str,
    relationship_id: str,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    RelationshipService(db, scope).delete_relationship(resident_id, relationship_id)
    return RouterResponse.deleted(message="Relationship removed")
