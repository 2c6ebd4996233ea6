from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Dict, Any
from ..database import get_db
from ..exceptions import RecordNotFoundError
from ..services.access_scope import BarangayScope
from ..services.dashboard_service import DashboardRefresher, DashboardService
from ..dependencies.permissions import get_barangay_scope, require_barangay_admin
from ..utils.constants import Messages
from ..utils.router_helpers import handle_service_errors, RouterResponse

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _dashboard_message(dashboard: Dict[str, Any]) -> str:
    if dashboard["warning"]:
        return dashboard["warning"]
    if dashboard["source"] == "live":
        return Messages.DASHBOARD_LIVE
    return "Dashboard retrieved successfully"


@router.get("/", response_model=Dict[str, Any])
@handle_service_errors
async def get_my_dashboard(
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    """Statistics for the current user's barangay"""
    dashboard = DashboardService(db, scope).get_barangay_dashboard()
    return RouterResponse.success(
        data={"dashboard": dashboard}, message=_dashboard_message(dashboard)
    )


@router.get("/{barangay_code}", response_model=Dict[str, Any])
@handle_service_errors
async def get_barangay_dashboard(
    barangay_code: str,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(get_barangay_scope),
):
    dashboard = DashboardService(db, scope).get_barangay_dashboard(barangay_code)
    return RouterResponse.success(
        data={"dashboard": dashboard}, message=_dashboard_message(dashboard)
    )


@router.post("/{barangay_code}/refresh", response_model=Dict[str, Any])
@handle_service_errors
async def refresh_dashboard(
    barangay_code: str,
    db: Session = Depends(get_db),
    scope: BarangayScope = Depends(require_barangay_admin),
):
    """Recompute the cached summary now"""
    if not scope.can_read_barangay(barangay_code):
        raise RecordNotFoundError(f"Barangay {barangay_code} not found")

    summary = DashboardRefresher(db).refresh_summary(barangay_code)
    return RouterResponse.success(
        data={
            "barangay_code": summary.barangay_code,
            "calculation_date": summary.calculation_date.isoformat(),
            "calculation_duration_ms": summary.calculation_duration_ms,
        },
        message=Messages.REFRESH_REQUESTED,
    )
