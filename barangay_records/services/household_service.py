from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Any, Dict, List, Optional
import logging

from ..database import retry_on_disconnect
from ..exceptions import (
    AuthorizationError,
    BusinessRuleViolationError,
    RecordNotFoundError,
    RecordsServiceError,
    ReferentialIntegrityError,
)
from ..models.enums import AuditOperation
from ..models.household import Household, HouseholdCodeSequence
from ..models.resident import Resident
from ..schemas.common import PaginationParams, paginate
from ..schemas.household import HouseholdCreate, HouseholdUpdate
from ..utils.constants import AppConstants
from .access_scope import BarangayScope, HouseholdRepository, ResidentRepository
from .audit_service import AuditService, snapshot
from .geography_service import hierarchy_codes_for
from .membership_service import HouseholdMembershipMaintainer
from .sectoral import classify_income

logger = logging.getLogger(__name__)


def format_household_code(barangay_code: str, number: int) -> str:
    return (
        f"{barangay_code}-{AppConstants.HOUSEHOLD_CODE_SUBDIVISION}"
        f"-{AppConstants.HOUSEHOLD_CODE_STREET}"
        f"-{number:0{AppConstants.HOUSEHOLD_NUMBER_WIDTH}d}"
    )


def _sequence_number(barangay_code: str, code: str) -> Optional[int]:
    """Household number of a code in the generated format, else None"""
    prefix = format_household_code(barangay_code, 0)[: -AppConstants.HOUSEHOLD_NUMBER_WIDTH]
    suffix = code[len(prefix):]
    if code.startswith(prefix) and suffix.isdigit():
        return int(suffix)
    return None


class HouseholdService:
    def __init__(self, db: Session, scope: BarangayScope):
        self.db = db
        self.scope = scope
        self.households = HouseholdRepository(db, scope)
        self.residents = ResidentRepository(db, scope)
        self.audit = AuditService(db)

    @property
    def _user_id(self) -> Optional[str]:
        return self.scope.profile.id

    def create_household(self, household_data: HouseholdCreate) -> Household:
        self.scope.ensure_can_modify_records()

        barangay_code = household_data.barangay_code or self.scope.barangay_code
        if not barangay_code:
            raise ReferentialIntegrityError(
                "barangay_code is required", field="barangay_code"
            )

        self.scope.ensure_can_write(barangay_code)

        hierarchy = hierarchy_codes_for(self.db, barangay_code)
        if not hierarchy:
            raise ReferentialIntegrityError(
                f"Unknown barangay code {barangay_code}", field="barangay_code"
            )

        try:
            if household_data.code:
                code = self._claim_explicit_code(barangay_code, household_data.code)
            else:
                code = self._next_household_code(barangay_code)

            fields = household_data.model_dump(exclude={"code", "barangay_code"})
            household = Household(
                code=code,
                barangay_code=barangay_code,
                city_municipality_code=hierarchy["city_municipality_code"],
                province_code=hierarchy["province_code"],
                region_code=hierarchy["region_code"],
                barangay_name=hierarchy["barangay_name"],
                city_name=hierarchy["city_name"],
                province_name=hierarchy["province_name"],
                region_name=hierarchy["region_name"],
                total_members=0,
                created_by=self._user_id,
                updated_by=self._user_id,
                **{key: getattr(value, "value", value) for key, value in fields.items()},
            )
            household.income_class = classify_income(household.monthly_income).value

            self.db.add(household)
            self.db.flush()

            self.audit.record(
                "households",
                code,
                AuditOperation.INSERT,
                barangay_code,
                user_id=self._user_id,
                new_values=snapshot(household),
            )

            self.db.commit()
            self.db.refresh(household)
            logger.info(f"Household {code} created in barangay {barangay_code}")
            return household

        except (RecordsServiceError, ValueError):
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            raise BusinessRuleViolationError(
                f"Household code conflict: {str(e.orig)}"
            ) from e
        except SQLAlchemyError:
            self.db.rollback()
            raise

    @retry_on_disconnect
    def get_household(self, code: str) -> Household:
        household = self.households.get(code)
        if not household:
            raise RecordNotFoundError(f"Household {code} not found")
        return household

    def _get_for_write(self, code: str) -> Household:
        household = self.households.get_for_write(code)
        if not household:
            raise RecordNotFoundError(f"Household {code} not found")
        return household

    @retry_on_disconnect
    def list_households(
        self, search: str = None, pagination: PaginationParams = None
    ) -> Dict[str, Any]:
        page = paginate(self.households.search(search), pagination or PaginationParams())
        page["items"] = [household.to_dict() for household in page["items"]]
        return page

    @retry_on_disconnect
    def get_household_members(
        self, code: str, include_inactive: bool = False
    ) -> List[Resident]:
        household = self.get_household(code)
        return self.residents.search(
            household_code=household.code, include_inactive=include_inactive
        ).all()

    def update_household(self, code: str, household_data: HouseholdUpdate) -> Household:
        household = self._get_for_write(code)

        updates = household_data.model_dump(exclude_unset=True)
        if not updates:
            return household

        try:
            old_values = snapshot(household)

            for field, value in updates.items():
                setattr(household, field, getattr(value, "value", value))

            if "monthly_income" in updates:
                household.income_class = classify_income(household.monthly_income).value

            household.updated_by = self._user_id
            self.db.flush()

            self.audit.record(
                "households",
                code,
                AuditOperation.UPDATE,
                household.barangay_code,
                user_id=self._user_id,
                old_values=old_values,
                new_values=snapshot(household),
            )

            self.db.commit()
            self.db.refresh(household)
            return household

        except SQLAlchemyError:
            self.db.rollback()
            raise

    def set_household_head(self, code: str, resident_id: Optional[str]) -> Household:
        """Point the household at one of its active members; None clears"""
        household = self._get_for_write(code)

        if resident_id is not None:
            if not self.residents.active_member(code, resident_id):
                raise ReferentialIntegrityError(
                    f"Resident {resident_id} is not an active member of household {code}",
                    field="household_head_id",
                )

        try:
            old_head = household.household_head_id
            household.household_head_id = resident_id
            household.updated_by = self._user_id
            self.db.flush()

            self.audit.record(
                "households",
                code,
                AuditOperation.UPDATE,
                household.barangay_code,
                user_id=self._user_id,
                old_values={"household_head_id": old_head},
                new_values={"household_head_id": resident_id},
            )

            self.db.commit()
            self.db.refresh(household)
            return household

        except SQLAlchemyError:
            self.db.rollback()
            raise

    def delete_household(self, code: str) -> None:
        household = self._get_for_write(code)

        referencing = self.residents.count_referencing(code)
        if referencing:
            raise ReferentialIntegrityError(
                f"Household {code} is still referenced by {referencing} resident(s)",
                field="household_code",
            )

        try:
            old_values = snapshot(household)
            self.db.delete(household)
            self.db.flush()

            self.audit.record(
                "households",
                code,
                AuditOperation.DELETE,
                old_values["barangay_code"],
                user_id=self._user_id,
                old_values=old_values,
            )

            self.db.commit()
            logger.info(f"Household {code} deleted")

        except IntegrityError as e:
            self.db.rollback()
            raise ReferentialIntegrityError(
                f"Household {code} is still referenced", field="household_code"
            ) from e
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def recount_members(self, code: str) -> Household:
        """Administrative repair: full recount of one household"""
        household = self._get_for_write(code)

        try:
            before = household.total_members
            after = HouseholdMembershipMaintainer(self.db).recompute(code)
            self.db.commit()
        except RecordsServiceError:
            self.db.rollback()
            raise

        if before != after:
            logger.warning(f"Household {code} member count corrected {before} -> {after}")
        self.db.refresh(household)
        return household

    def recount_all_members(self) -> Dict[str, int]:
        """Repair job over every household; super admin only"""
        if not self.scope.is_super_admin:
            raise AuthorizationError("Only a super admin can recount all households")

        try:
            corrected = HouseholdMembershipMaintainer(self.db).recompute_all()
            self.db.commit()
            return corrected
        except RecordsServiceError:
            self.db.rollback()
            raise

    def _next_household_code(self, barangay_code: str) -> str:
        sequence = (
            self.db.query(HouseholdCodeSequence)
            .filter(HouseholdCodeSequence.barangay_code == barangay_code)
            .with_for_update()
            .first()
        )
        if not sequence:
            sequence = HouseholdCodeSequence(barangay_code=barangay_code, last_value=0)
            self.db.add(sequence)

        while True:
            sequence.last_value += 1
            code = format_household_code(barangay_code, sequence.last_value)
            # Skip codes taken explicitly or used by a since-deleted household
            if not self._code_taken(code):
                break

        self.db.flush()
        return code

    def _claim_explicit_code(self, barangay_code: str, code: str) -> str:
        if not code.startswith(f"{barangay_code}-"):
            raise ValueError(
                f"Household code {code} does not belong to barangay {barangay_code}"
            )
        if self._code_taken(code):
            raise BusinessRuleViolationError(
                f"Household code {code} is already in use or was previously used"
            )

        number = _sequence_number(barangay_code, code)
        if number is not None:
            sequence = (
                self.db.query(HouseholdCodeSequence)
                .filter(HouseholdCodeSequence.barangay_code == barangay_code)
                .with_for_update()
                .first()
            )
            if not sequence:
                sequence = HouseholdCodeSequence(barangay_code=barangay_code, last_value=0)
                self.db.add(sequence)
            sequence.last_value = max(sequence.last_value, number)
            self.db.flush()

        return code

    def _code_taken(self, code: str) -> bool:
        return self.households.code_exists(code) or self.audit.was_deleted("households", code)
