from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Any, Dict, Optional
import logging

from ..database import retry_on_disconnect
from ..exceptions import (
    RecordNotFoundError,
    RecordsServiceError,
    ReferentialIntegrityError,
)
from ..models.enums import AuditOperation, ResidentMutation
from ..models.geography import PsocUnitGroup
from ..models.household import Household
from ..models.resident import Resident
from ..schemas.common import PaginationParams, paginate
from ..schemas.resident import ResidentCreate, ResidentUpdate
from .access_scope import BarangayScope, HouseholdRepository, ResidentRepository
from .audit_service import AuditService, snapshot
from .geography_service import hierarchy_codes_for
from .membership_service import HouseholdMembershipMaintainer, ResidentMutationEvent
from .sectoral import apply_sectoral_flags

logger = logging.getLogger(__name__)

# Changing any of these re-derives the sectoral flags
SECTORAL_INPUTS = {"birthdate", "employment_status", "education_attainment", "is_graduate"}


class ResidentService:
    """Resident writes, each committed together with its household recount.

    Every mutation runs resident write -> membership recount -> audit ->
    commit in one transaction; any failure rolls all of it back.
    """

    def __init__(self, db: Session, scope: BarangayScope):
        self.db = db
        self.scope = scope
        self.residents = ResidentRepository(db, scope)
        self.households = HouseholdRepository(db, scope)
        self.maintainer = HouseholdMembershipMaintainer(db)
        self.audit = AuditService(db)

    @property
    def _user_id(self) -> Optional[str]:
        return self.scope.profile.id

    def create_resident(self, resident_data: ResidentCreate) -> Resident:
        self.scope.ensure_can_modify_records()

        household = None
        if resident_data.household_code:
            household = self._get_target_household(resident_data.household_code)

        barangay_code = self._resolve_barangay(resident_data.barangay_code, household)
        if resident_data.family_position and household is None:
            self._reject_family_position()
        self.scope.ensure_can_write(barangay_code)

        hierarchy = hierarchy_codes_for(self.db, barangay_code)
        if not hierarchy:
            raise ReferentialIntegrityError(
                f"Unknown barangay code {barangay_code}", field="barangay_code"
            )
        self._check_psoc_code(resident_data.psoc_code)

        fields = resident_data.model_dump(exclude={"household_code", "barangay_code"})
        resident = Resident(
            household_code=household.code if household else None,
            barangay_code=barangay_code,
            city_municipality_code=hierarchy["city_municipality_code"],
            province_code=hierarchy["province_code"],
            region_code=hierarchy["region_code"],
            is_active=True,
            created_by=self._user_id,
            updated_by=self._user_id,
            **{key: getattr(value, "value", value) for key, value in fields.items()},
        )
        apply_sectoral_flags(resident)

        def write():
            self.db.add(resident)
            self.db.flush()
            return ResidentMutationEvent(
                ResidentMutation.INSERT,
                resident.id,
                new_household_code=resident.household_code,
            )

        self._run_mutation(write, AuditOperation.INSERT, resident, old_values=None)
        logger.info(f"Resident {resident.id} registered in barangay {barangay_code}")
        return resident

    @retry_on_disconnect
    def get_resident(self, resident_id: str) -> Resident:
        resident = self.residents.get(resident_id)
        if not resident:
            raise RecordNotFoundError(f"Resident {resident_id} not found")
        return resident

    @retry_on_disconnect
    def list_residents(
        self,
        search: str = None,
        household_code: str = None,
        include_inactive: bool = False,
        pagination: PaginationParams = None,
    ) -> Dict[str, Any]:
        query = self.residents.search(search, household_code, include_inactive)
        page = paginate(query, pagination or PaginationParams())
        page["items"] = [resident.to_dict() for resident in page["items"]]
        return page

    def update_resident(self, resident_id: str, resident_data: ResidentUpdate) -> Resident:
        resident = self._get_for_write(resident_id)

        updates = resident_data.model_dump(exclude_unset=True)
        if not updates:
            return resident
        if "psoc_code" in updates:
            self._check_psoc_code(updates["psoc_code"])
        if updates.get("family_position") and not resident.household_code:
            self._reject_family_position()

        old_values = snapshot(resident)

        def write():
            for field, value in updates.items():
                setattr(resident, field, getattr(value, "value", value))
            if SECTORAL_INPUTS & updates.keys():
                apply_sectoral_flags(resident)
            resident.updated_by = self._user_id
            self.db.flush()
            # Household unchanged; the recount leaves the stored value as is
            return ResidentMutationEvent(
                ResidentMutation.UPDATE,
                resident.id,
                old_household_code=resident.household_code,
                new_household_code=resident.household_code,
            )

        self._run_mutation(write, AuditOperation.UPDATE, resident, old_values)
        return resident

    def reassign_household(
        self, resident_id: str, new_household_code: Optional[str]
    ) -> Resident:
        """Move a resident to another household (or none) with both recounts"""
        resident = self._get_for_write(resident_id)

        new_household = None
        if new_household_code:
            new_household = self._get_target_household(new_household_code)
            self._check_same_barangay(resident.barangay_code, new_household)

        old_household_code = resident.household_code
        if old_household_code == new_household_code:
            return resident

        old_values = snapshot(resident)

        def write():
            locked = self.maintainer.lock_households(
                [old_household_code, new_household_code]
            )
            self._release_head(resident.id, locked.get(old_household_code))
            resident.household_code = new_household.code if new_household else None
            resident.family_position = None
            resident.updated_by = self._user_id
            self.db.flush()
            return ResidentMutationEvent(
                ResidentMutation.UPDATE,
                resident.id,
                old_household_code=old_household_code,
                new_household_code=resident.household_code,
            )

        self._run_mutation(write, AuditOperation.UPDATE, resident, old_values)
        logger.info(
            f"Resident {resident.id} moved from {old_household_code} to "
            f"{resident.household_code}"
        )
        return resident

    def deactivate_resident(self, resident_id: str) -> Resident:
        """Soft delete; repeated calls leave the household count unchanged"""
        resident = self._get_for_write(resident_id)

        if not resident.is_active:
            return resident

        old_values = snapshot(resident)

        def write():
            resident.is_active = False
            resident.updated_by = self._user_id
            self.db.flush()
            return ResidentMutationEvent(
                ResidentMutation.DEACTIVATE,
                resident.id,
                old_household_code=resident.household_code,
            )

        self._run_mutation(write, AuditOperation.UPDATE, resident, old_values)
        return resident

    def reactivate_resident(
        self, resident_id: str, household_code: Optional[str] = None
    ) -> Resident:
        """Undo a soft delete, optionally placing the resident in a household"""
        resident = self._get_for_write(resident_id)

        target = None
        if household_code:
            target = self._get_target_household(household_code)
            self._check_same_barangay(resident.barangay_code, target)

        moving = target is not None and target.code != resident.household_code
        if resident.is_active and not moving:
            return resident

        old_household_code = resident.household_code
        old_values = snapshot(resident)

        def write():
            if moving:
                locked = self.maintainer.lock_households(
                    [old_household_code, target.code]
                )
                self._release_head(resident.id, locked.get(old_household_code))
                resident.household_code = target.code
                resident.family_position = None
            resident.is_active = True
            resident.updated_by = self._user_id
            self.db.flush()
            if moving:
                return ResidentMutationEvent(
                    ResidentMutation.UPDATE,
                    resident.id,
                    old_household_code=old_household_code,
                    new_household_code=resident.household_code,
                )
            return ResidentMutationEvent(
                ResidentMutation.REACTIVATE,
                resident.id,
                new_household_code=resident.household_code,
            )

        self._run_mutation(write, AuditOperation.UPDATE, resident, old_values)
        return resident

    def delete_resident(self, resident_id: str) -> None:
        resident = self._get_for_write(resident_id)

        old_values = snapshot(resident)
        old_household_code = resident.household_code

        def write():
            locked = self.maintainer.lock_households([old_household_code])
            self._release_head(resident.id, locked.get(old_household_code))
            self.db.delete(resident)
            self.db.flush()
            return ResidentMutationEvent(
                ResidentMutation.DELETE,
                resident_id,
                old_household_code=old_household_code,
            )

        self._run_mutation(write, AuditOperation.DELETE, None, old_values)
        logger.info(f"Resident {resident_id} deleted")

    def _run_mutation(self, write, operation: AuditOperation, resident, old_values):
        try:
            event = write()
            self.maintainer.apply(event)

            self.audit.record(
                "residents",
                event.resident_id,
                operation,
                (resident.barangay_code if resident is not None else old_values["barangay_code"]),
                user_id=self._user_id,
                old_values=old_values,
                new_values=snapshot(resident) if resident is not None else None,
            )

            self.db.commit()
            if resident is not None:
                self.db.refresh(resident)

        except RecordsServiceError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            raise ReferentialIntegrityError(
                f"Resident write rejected: {str(e.orig)}"
            ) from e
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _get_for_write(self, resident_id: str) -> Resident:
        resident = self.residents.get_for_write(resident_id)
        if not resident:
            raise RecordNotFoundError(f"Resident {resident_id} not found")
        return resident

    def _release_head(self, resident_id: str, household: Optional[Household]) -> None:
        """Clear the head pointer of a (locked) household the resident is leaving"""
        if household is not None and household.household_head_id == resident_id:
            household.household_head_id = None
            self.db.flush()

    def _get_target_household(self, household_code: str) -> Household:
        # A household in another barangay is refused rather than reported unknown
        household = self.households.get_for_write(household_code)
        if not household:
            raise ReferentialIntegrityError(
                f"Unknown household code {household_code}", field="household_code"
            )
        return household

    def _resolve_barangay(
        self, explicit_code: Optional[str], household: Optional[Household]
    ) -> str:
        if household is not None:
            if explicit_code and explicit_code != household.barangay_code:
                raise ReferentialIntegrityError(
                    f"Household {household.code} belongs to barangay "
                    f"{household.barangay_code}, not {explicit_code}",
                    field="household_code",
                )
            return household.barangay_code

        barangay_code = explicit_code or self.scope.barangay_code
        if not barangay_code:
            raise ReferentialIntegrityError(
                "barangay_code is required", field="barangay_code"
            )
        return barangay_code

    def _check_same_barangay(self, barangay_code: str, household: Household) -> None:
        if household.barangay_code != barangay_code:
            raise ReferentialIntegrityError(
                f"Household {household.code} is in a different barangay",
                field="household_code",
            )

    def _reject_family_position(self) -> None:
        raise ReferentialIntegrityError(
            "family_position applies only to residents in a household",
            field="family_position",
        )

    def _check_psoc_code(self, psoc_code: Optional[str]) -> None:
        if psoc_code and not self.db.get(PsocUnitGroup, psoc_code):
            raise ReferentialIntegrityError(
                f"Unknown occupation code {psoc_code}", field="psoc_code"
            )
