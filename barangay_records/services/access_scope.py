from sqlalchemy import false, select
from sqlalchemy.orm import Session, Query
from typing import Optional, Type
import logging

from ..exceptions import AuthorizationError
from ..models.enums import UserRole
from ..models.geography import Barangay, CityMunicipality
from ..models.user_profile import UserProfile
from ..models.household import Household
from ..models.resident import Resident
from ..models.migrant_information import MigrantInformation
from ..models.resident_relationship import ResidentRelationship
from ..models.dashboard_summary import BarangayDashboardSummary

logger = logging.getLogger(__name__)

BARANGAY_ROLES = {
    UserRole.BARANGAY_ADMIN.value,
    UserRole.BARANGAY_USER.value,
    UserRole.READ_ONLY.value,
}

# Higher-level admins read across their jurisdiction by this column
JURISDICTION_COLUMNS = {
    UserRole.CITY_ADMIN.value: "city_municipality_code",
    UserRole.PROVINCE_ADMIN.value: "province_code",
    UserRole.REGION_ADMIN.value: "region_code",
}

WRITE_ROLES = {
    UserRole.SUPER_ADMIN.value,
    UserRole.BARANGAY_ADMIN.value,
    UserRole.BARANGAY_USER.value,
}


class BarangayScope:
    """Row visibility and write permission for one request's profile.

    Built fresh per request from the profile as stored at that moment;
    role or barangay changes apply to the next request.
    """

    def __init__(self, profile: UserProfile, db: Session = None):
        self.profile = profile
        self.db = db or Session.object_session(profile)

    @property
    def role(self) -> str:
        return self.profile.role

    @property
    def barangay_code(self) -> Optional[str]:
        return self.profile.barangay_code

    @property
    def is_active(self) -> bool:
        return bool(self.profile.is_active)

    @property
    def is_super_admin(self) -> bool:
        return self.is_active and self.role == UserRole.SUPER_ADMIN.value

    def predicate(self, model: Type):
        """SQL predicate selecting the rows of `model` this profile may read"""
        if not self.is_active:
            return false()

        if self.role == UserRole.SUPER_ADMIN.value:
            return None

        if self.role in BARANGAY_ROLES:
            if not self.barangay_code:
                return false()
            return model.barangay_code == self.barangay_code

        column_name = JURISDICTION_COLUMNS.get(self.role)
        if column_name:
            value = getattr(self.profile, column_name)
            column = getattr(model, column_name, None)
            if value and column is not None:
                return column == value
            # Tables without the jurisdiction column fall back to the barangay
            if value and column is None:
                return model.barangay_code.in_(
                    self._barangays_in_jurisdiction(column_name, value)
                )

        return false()

    def apply(self, query: Query, model: Type) -> Query:
        predicate = self.predicate(model)
        if predicate is None:
            return query
        return query.filter(predicate)

    def can_read_barangay(self, barangay_code: str) -> bool:
        if not self.is_active:
            return False
        if self.role == UserRole.SUPER_ADMIN.value:
            return True
        if self.role in BARANGAY_ROLES:
            return barangay_code == self.barangay_code

        column_name = JURISDICTION_COLUMNS.get(self.role)
        if not column_name or not getattr(self.profile, column_name):
            return False
        from .geography_service import hierarchy_codes_for

        hierarchy = hierarchy_codes_for(self.db, barangay_code)
        return bool(hierarchy) and hierarchy.get(column_name) == getattr(
            self.profile, column_name
        )

    def ensure_can_modify_records(self) -> None:
        if not self.is_active:
            raise AuthorizationError("User profile is inactive")

        if self.role not in WRITE_ROLES:
            raise AuthorizationError(f"Role '{self.role}' cannot modify records")

    def ensure_can_write(self, barangay_code: str) -> None:
        self.ensure_can_modify_records()

        if self.role == UserRole.SUPER_ADMIN.value:
            return

        if not self.barangay_code or barangay_code != self.barangay_code:
            logger.warning(
                f"Write to barangay {barangay_code} denied for profile "
                f"{self.profile.id} (barangay {self.barangay_code})"
            )
            raise AuthorizationError("Record belongs to a different barangay")

    def ensure_can_manage_profile(self, target: UserProfile) -> None:
        if not self.is_active:
            raise AuthorizationError("User profile is inactive")

        if self.role == UserRole.SUPER_ADMIN.value:
            return

        if self.role != UserRole.BARANGAY_ADMIN.value:
            raise AuthorizationError("Only administrators can manage user profiles")

        if target.role == UserRole.SUPER_ADMIN.value:
            raise AuthorizationError("Cannot manage a super administrator")

        if target.barangay_code != self.barangay_code:
            raise AuthorizationError("Profile belongs to a different barangay")

    @staticmethod
    def _barangays_in_jurisdiction(column_name: str, value: str):
        stmt = select(Barangay.code).join(
            CityMunicipality,
            Barangay.city_municipality_code == CityMunicipality.code,
        )
        if column_name == "city_municipality_code":
            return stmt.where(CityMunicipality.code == value)
        if column_name == "province_code":
            return stmt.where(CityMunicipality.province_code == value)
        return stmt.where(CityMunicipality.region_code == value)


class ScopedRepository:
    """Data access for one entity, always filtered through a BarangayScope"""

    model = None
    key = "id"

    def __init__(self, db: Session, scope: BarangayScope):
        self.db = db
        self.scope = scope

    def query(self) -> Query:
        return self.scope.apply(self.db.query(self.model), self.model)

    def get(self, key_value):
        return self.query().filter(getattr(self.model, self.key) == key_value).first()

    def get_for_write(self, key_value):
        """Load a write target unfiltered so out-of-scope rows are refused, not hidden"""
        self.scope.ensure_can_modify_records()

        row = (
            self.db.query(self.model)
            .filter(getattr(self.model, self.key) == key_value)
            .first()
        )
        if row is not None:
            self.scope.ensure_can_write(row.barangay_code)
        return row


class HouseholdRepository(ScopedRepository):
    model = Household
    key = "code"

    def search(self, search: str = None):
        query = self.query()
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                Household.code.ilike(pattern)
                | Household.street_name.ilike(pattern)
                | Household.house_number.ilike(pattern)
                | Household.subdivision.ilike(pattern)
            )
        return query.order_by(Household.code)

    def code_exists(self, code: str) -> bool:
        # Codes are unique across every barangay, visible or not
        return (
            self.db.query(Household.code).filter(Household.code == code).first()
            is not None
        )


class ResidentRepository(ScopedRepository):
    model = Resident

    def search(
        self,
        search: str = None,
        household_code: str = None,
        include_inactive: bool = False,
    ):
        query = self.query()
        if not include_inactive:
            query = query.filter(Resident.is_active == True)
        if household_code:
            query = query.filter(Resident.household_code == household_code)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                Resident.first_name.ilike(pattern)
                | Resident.last_name.ilike(pattern)
                | Resident.middle_name.ilike(pattern)
            )
        return query.order_by(Resident.last_name, Resident.first_name)

    def active_member(self, household_code: str, resident_id: str) -> Optional[Resident]:
        return (
            self.query()
            .filter(
                Resident.id == resident_id,
                Resident.household_code == household_code,
                Resident.is_active == True,
            )
            .first()
        )

    def count_referencing(self, household_code: str) -> int:
        # Active or not, every referencing row blocks a household delete
        return (
            self.db.query(Resident.id)
            .filter(Resident.household_code == household_code)
            .count()
        )


class DashboardSummaryRepository(ScopedRepository):
    model = BarangayDashboardSummary
    key = "barangay_code"


class MigrantInformationRepository(ScopedRepository):
    model = MigrantInformation
    key = "resident_id"


class ResidentRelationshipRepository(ScopedRepository):
    model = ResidentRelationship

    def for_resident(self, resident_id: str):
        """Ties stated by the resident, plus reciprocal ties stated about them"""
        return self.query().filter(
            (ResidentRelationship.resident_a_id == resident_id)
            | (
                (ResidentRelationship.resident_b_id == resident_id)
                & (ResidentRelationship.is_reciprocal == True)
            )
        ).order_by(ResidentRelationship.relationship_type, ResidentRelationship.id)

    def find(self, resident_a_id: str, resident_b_id: str, relationship_type: str):
        # Unfiltered: the pair is unique across the whole table
        return (
            self.db.query(ResidentRelationship)
            .filter(
                ResidentRelationship.resident_a_id == resident_a_id,
                ResidentRelationship.resident_b_id == resident_b_id,
                ResidentRelationship.relationship_type == relationship_type,
            )
            .first()
        )
