from sqlalchemy.orm import Session
from sqlalchemy import and_, case, func, text
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Callable, Dict, List, Optional
from datetime import date, timedelta
import logging
import time
import warnings

from ..config import settings
from ..database import retry_on_disconnect
from ..exceptions import DatabaseUnavailableError, StaleCacheWarning
from ..models.dashboard_summary import BarangayDashboardSummary, COUNT_COLUMNS
from ..models.enums import CivilStatus, EmploymentStatus, Sex
from ..models.household import Household
from ..models.resident import Resident
from ..utils.constants import AGE_BRACKETS, AppConstants, Messages
from ..utils.date_helpers import DateHelpers
from .access_scope import BarangayScope, DashboardSummaryRepository

logger = logging.getLogger(__name__)


def _flag(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def _age_between(min_age: int, max_age: Optional[int], today: date):
    lower, upper = DateHelpers.birthdate_range(min_age, max_age, today)
    if lower is None:
        return Resident.birthdate <= upper
    return and_(Resident.birthdate > lower, Resident.birthdate <= upper)


def aggregate_barangay(
    db: Session, barangay_code: str, scope: BarangayScope = None, today: date = None
) -> Dict[str, Any]:
    """Count active residents and households of one barangay in two queries"""
    today = today or date.today()

    resident_columns = [
        func.count(Resident.id).label("total_residents"),
        _flag(Resident.sex == Sex.MALE.value).label("male_count"),
        _flag(Resident.sex == Sex.FEMALE.value).label("female_count"),
    ]
    resident_columns += [
        _flag(_age_between(low, high, today)).label(name)
        for name, low, high in AGE_BRACKETS
    ]
    resident_columns += [
        _flag(Resident.civil_status == CivilStatus.SINGLE.value).label("single_count"),
        _flag(Resident.civil_status == CivilStatus.MARRIED.value).label("married_count"),
        _flag(Resident.civil_status == CivilStatus.WIDOWED.value).label("widowed_count"),
        _flag(
            Resident.civil_status.in_(
                [CivilStatus.DIVORCED.value, CivilStatus.SEPARATED.value]
            )
        ).label("divorced_separated_count"),
        _flag(Resident.is_employed == True).label("employed_count"),
        _flag(Resident.is_unemployed == True).label("unemployed_count"),
        _flag(Resident.employment_status == EmploymentStatus.STUDENT.value).label(
            "student_count"
        ),
        _flag(Resident.employment_status == EmploymentStatus.RETIRED.value).label(
            "retired_count"
        ),
        # Age-based so it does not depend on when the row was last written
        _flag(_age_between(AppConstants.SENIOR_CITIZEN_AGE, None, today)).label(
            "senior_citizen_count"
        ),
        _flag(Resident.is_person_with_disability == True).label("pwd_count"),
        _flag(Resident.is_overseas_filipino_worker == True).label("ofw_count"),
        _flag(Resident.is_solo_parent == True).label("solo_parent_count"),
        _flag(Resident.is_indigenous_people == True).label("indigenous_count"),
        _flag(Resident.is_out_of_school_children == True).label(
            "out_of_school_children_count"
        ),
        _flag(Resident.is_out_of_school_youth == True).label(
            "out_of_school_youth_count"
        ),
    ]

    resident_query = db.query(*resident_columns).filter(
        Resident.barangay_code == barangay_code, Resident.is_active == True
    )
    household_query = db.query(
        func.count(Household.code), func.avg(Household.total_members)
    ).filter(Household.barangay_code == barangay_code)

    if scope is not None:
        resident_query = scope.apply(resident_query, Resident)
        household_query = scope.apply(household_query, Household)

    row = resident_query.one()
    total_households, average_size = household_query.one()

    values = dict(row._mapping)
    values["total_households"] = total_households
    counts = {name: int(values[name] or 0) for name in COUNT_COLUMNS}

    return {
        "counts": counts,
        "average_household_size": round(float(average_size or 0), 2),
    }


class DashboardRefresher:
    """Writes summary rows; unscoped, for scheduled and on-demand jobs"""

    def __init__(self, db: Session):
        self.db = db

    @retry_on_disconnect
    def refresh_summary(self, barangay_code: str) -> BarangayDashboardSummary:
        started = time.monotonic()
        try:
            result = aggregate_barangay(self.db, barangay_code)

            summary = self.db.get(BarangayDashboardSummary, barangay_code)
            if not summary:
                summary = BarangayDashboardSummary(barangay_code=barangay_code)
                self.db.add(summary)

            for name, value in result["counts"].items():
                setattr(summary, name, value)
            summary.average_household_size = result["average_household_size"]
            summary.calculation_date = DateHelpers.utcnow()
            summary.calculation_duration_ms = int((time.monotonic() - started) * 1000)

            self.db.commit()
            self.db.refresh(summary)
            logger.info(
                f"Dashboard summary for {barangay_code} refreshed in "
                f"{summary.calculation_duration_ms} ms"
            )
            return summary

        except SQLAlchemyError:
            self.db.rollback()
            raise

    def refresh_all_summaries(self) -> Dict[str, List[str]]:
        """Refresh every barangay with records or an existing summary"""
        codes = sorted(
            {row[0] for row in self.db.query(Resident.barangay_code).distinct()}
            | {row[0] for row in self.db.query(Household.barangay_code).distinct()}
            | {row[0] for row in self.db.query(BarangayDashboardSummary.barangay_code)}
        )

        result = {"refreshed": [], "failed": []}
        for code in codes:
            try:
                self.refresh_summary(code)
                result["refreshed"].append(code)
            except (SQLAlchemyError, DatabaseUnavailableError) as e:
                logger.error(f"Dashboard refresh failed for {code}: {str(e)}")
                result["failed"].append(code)

        logger.info(
            f"Dashboard refresh finished: {len(result['refreshed'])} refreshed, "
            f"{len(result['failed'])} failed"
        )
        return result


class DashboardService:
    """Per-barangay statistics served from the summary cache.

    A stale or missing summary falls back to a live aggregate and asks for
    an asynchronous refresh; if the live query fails, the stale row is
    served with a warning rather than an error.
    """

    def __init__(
        self,
        db: Session,
        scope: BarangayScope,
        refresh_requester: Callable[[str], Any] = None,
    ):
        self.db = db
        self.scope = scope
        self.summaries = DashboardSummaryRepository(db, scope)
        self.refresh_requester = refresh_requester

    def get_barangay_dashboard(self, barangay_code: str = None) -> Dict[str, Any]:
        barangay_code = barangay_code or self.scope.barangay_code
        if not barangay_code:
            raise ValueError("barangay_code is required")

        cached = self._load_cached(barangay_code)
        if cached and self._is_fresh(cached["calculation_date"]):
            return self._payload(barangay_code, cached, stale=False, source="cache")

        live = None
        if settings.DASHBOARD_LIVE_FALLBACK:
            live = self._try_live_summary(barangay_code)

        if self.scope.can_read_barangay(barangay_code):
            self._request_refresh(barangay_code)

        cached_date = cached["calculation_date"] if cached else None

        if live is not None:
            return self._payload(
                barangay_code,
                live,
                stale=True,
                source="live",
                cached_calculation_date=cached_date,
            )

        if cached:
            message = (
                f"Serving dashboard for {barangay_code} calculated at "
                f"{cached_date.isoformat()}"
            )
            logger.warning(f"{StaleCacheWarning.__name__}: {message}")
            warnings.warn(message, StaleCacheWarning, stacklevel=2)
            return self._payload(
                barangay_code,
                cached,
                stale=True,
                source="cache",
                cached_calculation_date=cached_date,
                warning=Messages.DASHBOARD_STALE,
            )

        raise DatabaseUnavailableError(
            f"No dashboard data available for barangay {barangay_code}"
        )

    def compute_live_summary(self, barangay_code: str) -> Dict[str, Any]:
        started = time.monotonic()
        previous_timeout = None
        if self.db.get_bind().dialect.name == "postgresql":
            previous_timeout = self.db.execute(text("SHOW statement_timeout")).scalar()
            self._set_statement_timeout(str(int(settings.DASHBOARD_STATEMENT_TIMEOUT_MS)))

        result = aggregate_barangay(self.db, barangay_code, scope=self.scope)

        # A timed-out aggregate aborts the transaction, and the rollback clears the limit
        if previous_timeout is not None:
            self._set_statement_timeout(previous_timeout)

        result["calculation_date"] = DateHelpers.utcnow()
        result["calculation_duration_ms"] = int((time.monotonic() - started) * 1000)
        return result

    def _set_statement_timeout(self, value: str) -> None:
        # is_local=true: the setting ends with the current transaction at the latest
        self.db.execute(
            text("SELECT set_config('statement_timeout', :value, true)"),
            {"value": value},
        )

    @retry_on_disconnect
    def _load_cached(self, barangay_code: str) -> Optional[Dict[str, Any]]:
        summary = self.summaries.get(barangay_code)
        if not summary:
            return None
        return {
            "counts": summary.counts(),
            "average_household_size": float(summary.average_household_size or 0),
            "calculation_date": DateHelpers.as_aware(summary.calculation_date),
            "calculation_duration_ms": summary.calculation_duration_ms,
        }

    def _try_live_summary(self, barangay_code: str) -> Optional[Dict[str, Any]]:
        try:
            return self.compute_live_summary(barangay_code)
        except SQLAlchemyError as e:
            # Aborted transaction (e.g. statement timeout) must be cleared
            self.db.rollback()
            logger.warning(f"Live dashboard query failed for {barangay_code}: {e}")
            return None

    def _is_fresh(self, calculation_date) -> bool:
        threshold = DateHelpers.utcnow() - timedelta(
            hours=settings.DASHBOARD_FRESHNESS_HOURS
        )
        return calculation_date is not None and calculation_date >= threshold

    def _request_refresh(self, barangay_code: str) -> None:
        requester = self.refresh_requester
        if requester is None:
            from ..utils.background_tasks import request_summary_refresh

            requester = request_summary_refresh
        requester(barangay_code)

    def _payload(
        self,
        barangay_code: str,
        data: Dict[str, Any],
        stale: bool,
        source: str,
        cached_calculation_date=None,
        warning: str = None,
    ) -> Dict[str, Any]:
        return {
            "barangay_code": barangay_code,
            "counts": data["counts"],
            "average_household_size": data["average_household_size"],
            "calculation_date": data["calculation_date"].isoformat(),
            "calculation_duration_ms": data.get("calculation_duration_ms"),
            "stale": stale,
            "source": source,
            "cached_calculation_date": (
                cached_calculation_date.isoformat() if cached_calculation_date else None
            ),
            "warning": warning,
        }
