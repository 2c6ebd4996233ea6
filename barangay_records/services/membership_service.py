from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from dataclasses import dataclass
from typing import Dict, List, Optional
import logging

from ..exceptions import ConsistencyMaintenanceFailure
from ..models.enums import ResidentMutation
from ..models.household import Household
from ..models.resident import Resident

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResidentMutationEvent:
    operation: ResidentMutation
    resident_id: str
    old_household_code: Optional[str] = None
    new_household_code: Optional[str] = None

    def affected_household_codes(self) -> List[str]:
        if self.operation in (ResidentMutation.INSERT, ResidentMutation.REACTIVATE):
            codes = [self.new_household_code]
        elif self.operation in (ResidentMutation.DELETE, ResidentMutation.DEACTIVATE):
            codes = [self.old_household_code]
        else:
            codes = [self.old_household_code, self.new_household_code]

        affected = []
        for code in codes:
            if code and code not in affected:
                affected.append(code)
        return affected


class HouseholdMembershipMaintainer:
    """Keeps Household.total_members equal to its active resident count.

    Runs inside the caller's transaction. Every affected household is
    recounted in full, so applying the same event twice is harmless.
    """

    def __init__(self, db: Session):
        self.db = db

    def apply(self, event: ResidentMutationEvent) -> Dict[str, int]:
        try:
            self.db.flush()
            counts = {}
            # Sorted so concurrent transactions lock households in one order
            for code in sorted(event.affected_household_codes()):
                counts[code] = self._recount(code)
            return counts
        except SQLAlchemyError as e:
            logger.error(
                f"Membership recount failed for {event.operation.value} "
                f"of resident {event.resident_id}: {e}"
            )
            raise ConsistencyMaintenanceFailure(
                f"Failed to update household member counts: {str(e)}"
            ) from e

    def lock_households(self, codes: List[Optional[str]]) -> Dict[str, Household]:
        """Row-lock households ahead of a write that touches them, in sorted order"""
        try:
            locked = {}
            for code in sorted({code for code in codes if code}):
                household = self._lock(code)
                if household is not None:
                    locked[code] = household
            return locked
        except SQLAlchemyError as e:
            raise ConsistencyMaintenanceFailure(
                f"Failed to lock households {sorted(c for c in codes if c)}: {str(e)}"
            ) from e

    def recompute(self, household_code: str) -> int:
        try:
            self.db.flush()
            return self._recount(household_code)
        except SQLAlchemyError as e:
            raise ConsistencyMaintenanceFailure(
                f"Failed to recount household {household_code}: {str(e)}"
            ) from e

    def recompute_all(self) -> Dict[str, int]:
        """Repair job: recount every household; returns only corrected ones"""
        try:
            self.db.flush()
            corrected = {}
            codes = [row.code for row in self.db.query(Household.code).order_by(Household.code)]
            for code in codes:
                before = (
                    self.db.query(Household.total_members)
                    .filter(Household.code == code)
                    .scalar()
                )
                after = self._recount(code)
                if before != after:
                    corrected[code] = after
            if corrected:
                logger.warning(f"Corrected member counts for {len(corrected)} households")
            return corrected
        except SQLAlchemyError as e:
            raise ConsistencyMaintenanceFailure(
                f"Failed to recount households: {str(e)}"
            ) from e

    def _lock(self, household_code: str) -> Optional[Household]:
        return (
            self.db.query(Household)
            .filter(Household.code == household_code)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def _recount(self, household_code: str) -> int:
        household = self._lock(household_code)
        if not household:
            # Household deleted in the same transaction; nothing to maintain
            return 0

        active_count = (
            self.db.query(func.count(Resident.id))
            .filter(
                Resident.household_code == household_code,
                Resident.is_active == True,
            )
            .scalar()
        )

        if household.total_members != active_count:
            household.total_members = active_count
            self.db.flush()

        return active_count
