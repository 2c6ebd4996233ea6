import schedule
import time
import logging
import threading
from ..config import settings
from ..database import SessionLocal, session_scope
from ..exceptions import DatabaseUnavailableError
from ..services.dashboard_service import DashboardRefresher
from sqlalchemy.exc import SQLAlchemyError
from .date_helpers import DateHelpers

logger = logging.getLogger(__name__)


class DashboardRefreshScheduler:
    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory
        self.running = False
        self.last_run_time = None
        self.last_run_status = "Not started"
        self.jobs = schedule.Scheduler()

    def schedule_dashboard_refresh(self):
        """Refresh every barangay summary on a fixed interval"""
        hours = settings.DASHBOARD_REFRESH_INTERVAL_HOURS
        self.jobs.every(hours).hours.do(self.run_refresh)
        logger.info(f"Dashboard refresh scheduled every {hours} hour(s)")

    def run_refresh(self):
        self.last_run_time = DateHelpers.utcnow()

        try:
            with session_scope(self.session_factory) as db:
                result = DashboardRefresher(db).refresh_all_summaries()
            self.last_run_status = (
                "Success" if not result["failed"]
                else f"{len(result['failed'])} barangay(s) failed"
            )
            return result
        except (SQLAlchemyError, DatabaseUnavailableError) as e:
            logger.error(f"Scheduled dashboard refresh failed: {str(e)}")
            self.last_run_status = f"Error: {str(e)}"
            return None

    def start_scheduler(self, poll_seconds: int = 60):
        """Blocking loop; run it in a daemon thread"""
        self.running = True
        logger.info("Starting dashboard refresh scheduler...")

        self.schedule_dashboard_refresh()

        while self.running:
            self.jobs.run_pending()
            time.sleep(poll_seconds)

    def stop_scheduler(self):
        self.running = False
        self.jobs.clear()
        logger.info("Dashboard refresh scheduler stopped")

    def get_status(self):
        return {
            "running": self.running,
            "scheduled_jobs_count": len(self.jobs.jobs),
            "last_run_time": (
                self.last_run_time.isoformat() if self.last_run_time else None
            ),
            "last_run_status": self.last_run_status,
            "job_details": [
                {
                    "job": str(job.job_func.__name__),
                    "next_run": job.next_run.isoformat() if job.next_run else None,
                    "interval": str(job.interval),
                    "unit": job.unit,
                }
                for job in self.jobs.jobs
            ],
        }


scheduler = DashboardRefreshScheduler()

# Barangays with a refresh already running
_pending_refreshes = set()
_pending_lock = threading.Lock()


def refresh_barangay_summary(barangay_code: str, session_factory=SessionLocal):
    """Refresh one summary in its own session and transaction"""
    try:
        with session_scope(session_factory) as db:
            DashboardRefresher(db).refresh_summary(barangay_code)
    except (SQLAlchemyError, DatabaseUnavailableError) as e:
        logger.error(f"On-demand dashboard refresh failed for {barangay_code}: {str(e)}")
    finally:
        with _pending_lock:
            _pending_refreshes.discard(barangay_code)


def request_summary_refresh(barangay_code: str, session_factory=SessionLocal) -> bool:
    """Start a background refresh unless one is already running for the barangay"""
    with _pending_lock:
        if barangay_code in _pending_refreshes:
            return False
        _pending_refreshes.add(barangay_code)

    thread = threading.Thread(
        target=refresh_barangay_summary,
        args=(barangay_code, session_factory),
        daemon=True,
    )
    thread.start()
    return True


def start_background_tasks():
    """Start background tasks (call this when starting the app)"""

    scheduler_thread = threading.Thread(target=scheduler.start_scheduler, daemon=True)
    scheduler_thread.start()

    logger.info("Background tasks started in separate thread")


def stop_background_tasks():
    scheduler.stop_scheduler()
