from sqlalchemy.orm import Session
from sqlalchemy import case
from typing import Any, Dict, List, Optional

from ..database import retry_on_disconnect
from ..exceptions import RecordNotFoundError
from ..models.geography import Barangay, CityMunicipality, Province, Region
from ..utils.constants import AppConstants


def hierarchy_codes_for(db: Session, barangay_code: str) -> Optional[Dict[str, Any]]:
    """Region/province/city codes and names for a barangay, or None"""
    row = (
        db.query(Barangay, CityMunicipality)
        .join(CityMunicipality, Barangay.city_municipality_code == CityMunicipality.code)
        .filter(Barangay.code == barangay_code)
        .first()
    )
    if not row:
        return None

    barangay, city = row
    province = (
        db.query(Province).filter(Province.code == city.province_code).first()
        if city.province_code
        else None
    )
    region_code = province.region_code if province else city.region_code
    region = db.query(Region).filter(Region.code == region_code).first()

    return {
        "barangay_code": barangay.code,
        "barangay_name": barangay.name,
        "city_municipality_code": city.code,
        "city_name": city.name,
        "city_type": city.type,
        "is_independent": bool(city.is_independent),
        "province_code": province.code if province else None,
        "province_name": province.name if province else None,
        "region_code": region_code,
        "region_name": region.name if region else None,
    }


class GeographyService:
    def __init__(self, db: Session):
        self.db = db

    @retry_on_disconnect
    def search_barangays(
        self, term: str, limit: int = AppConstants.BARANGAY_SEARCH_LIMIT
    ) -> List[Dict[str, Any]]:
        """Barangays whose name contains `term`, prefix matches first"""
        term = (term or "").strip()
        if not term:
            return []

        limit = min(limit, AppConstants.SEARCH_RESULTS_LIMIT)
        prefix_first = case((Barangay.name.ilike(f"{term}%"), 0), else_=1)

        rows = (
            self.db.query(Barangay, CityMunicipality)
            .join(
                CityMunicipality,
                Barangay.city_municipality_code == CityMunicipality.code,
            )
            .filter(Barangay.is_active == True, Barangay.name.ilike(f"%{term}%"))
            .order_by(prefix_first, Barangay.name)
            .limit(limit)
            .all()
        )

        return [
            {
                "code": barangay.code,
                "name": barangay.name,
                "city_municipality_code": city.code,
                "city_name": city.name,
            }
            for barangay, city in rows
        ]

    @retry_on_disconnect
    def get_barangay_hierarchy(self, barangay_code: str) -> Dict[str, Any]:
        hierarchy = hierarchy_codes_for(self.db, barangay_code)
        if not hierarchy:
            raise RecordNotFoundError(f"Barangay {barangay_code} not found")
        return hierarchy
