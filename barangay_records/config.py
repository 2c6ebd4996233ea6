import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: str) -> List[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class Settings:
    """Process-wide configuration, read once from the environment"""

    def __init__(self):
        # Database
        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barangay_records.db")
        self.DB_MAX_RETRIES = int(os.getenv("DB_MAX_RETRIES", "3"))
        self.DB_RETRY_BACKOFF_SECONDS = float(
            os.getenv("DB_RETRY_BACKOFF_SECONDS", "0.5")
        )

        # Supabase (auth provider)
        self.SUPABASE_URL = os.getenv("SUPABASE_URL")
        self.SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")

        # Dashboard cache
        self.DASHBOARD_FRESHNESS_HOURS = float(
            os.getenv("DASHBOARD_FRESHNESS_HOURS", "6")
        )
        self.DASHBOARD_REFRESH_INTERVAL_HOURS = int(
            os.getenv("DASHBOARD_REFRESH_INTERVAL_HOURS", "3")
        )
        self.DASHBOARD_STATEMENT_TIMEOUT_MS = int(
            os.getenv("DASHBOARD_STATEMENT_TIMEOUT_MS", "5000")
        )
        self.DASHBOARD_LIVE_FALLBACK = _as_bool(
            os.getenv("DASHBOARD_LIVE_FALLBACK", "true")
        )

        # Runtime
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.ENABLE_BACKGROUND_TASKS = _as_bool(
            os.getenv("ENABLE_BACKGROUND_TASKS", "true")
        )
        self.CORS_ORIGINS = _as_list(
            os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
        )

    @property
    def uses_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
