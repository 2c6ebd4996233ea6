from barangay_records.models import BarangayDashboardSummary
from barangay_records.utils import background_tasks
from barangay_records.utils.background_tasks import DashboardRefreshScheduler

from .conftest import BARANGAY_X


def test_scheduled_run_refreshes_summaries(db, session_factory, profiles, make_household):
    make_household(profiles["admin_x"])
    scheduler = DashboardRefreshScheduler(session_factory=session_factory)

    result = scheduler.run_refresh()

    assert result == {"refreshed": [BARANGAY_X], "failed": []}
    assert scheduler.get_status()["last_run_status"] == "Success"
    db.expire_all()
    assert db.get(BarangayDashboardSummary, BARANGAY_X).total_households == 1


def test_schedule_registers_one_job(session_factory):
    scheduler = DashboardRefreshScheduler(session_factory=session_factory)

    scheduler.schedule_dashboard_refresh()
    status = scheduler.get_status()

    assert status["scheduled_jobs_count"] == 1
    assert status["job_details"][0]["job"] == "run_refresh"

    scheduler.stop_scheduler()
    assert scheduler.get_status()["scheduled_jobs_count"] == 0


def test_on_demand_refresh_clears_pending_marker(db, session_factory, profiles, make_household):
    make_household(profiles["admin_x"])
    background_tasks._pending_refreshes.add(BARANGAY_X)

    background_tasks.refresh_barangay_summary(BARANGAY_X, session_factory)

    assert BARANGAY_X not in background_tasks._pending_refreshes
    db.expire_all()
    assert db.get(BarangayDashboardSummary, BARANGAY_X) is not None


def test_duplicate_refresh_request_is_ignored(session_factory, monkeypatch):
    monkeypatch.setattr(background_tasks, "_pending_refreshes", {BARANGAY_X})

    assert background_tasks.request_summary_refresh(BARANGAY_X, session_factory) is False
