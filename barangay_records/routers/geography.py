from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, Any
from ..database import get_db
from ..services.access_scope import BarangayScope
from ..services.geography_service import GeographyService
from ..dependencies.permissions import get_barangay_scope
from ..utils.constants import AppConstants
from ..utils.router_helpers import handle_service_errors, RouterResponse

router = APIRouter(prefix="/geography", tags=["geography"])


@router.get("/barangays", response_model=Dict[str, Any])
@handle_service_errors
async def search_barangays(
    q: str = Query(..., min_length=2, max_length=100),
    limit: int = Query(
        AppConstants.BARANGAY_SEARCH_LIMIT, ge=1, le=AppConstants.SEARCH_RESULTS_LIMIT
    ),
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    """Search PSGC barangays by name"""
    results = GeographyService(db).search_barangays(q, limit=limit)
    return RouterResponse.success(
        data={"barangays": results, "total_count": len(results)}
    )


@router.get("/barangays/{code}", response_model=Dict[str, Any])
@handle_service_errors
async def get_barangay_hierarchy(
    code: str,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    hierarchy = GeographyService(db).get_barangay_hierarchy(code)
    return RouterResponse.success(data={"barangay": hierarchy})
