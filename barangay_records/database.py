from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker
from supabase import create_client, Client
from contextlib import contextmanager
from functools import wraps
import logging
import time

from .config import settings
from .exceptions import DatabaseUnavailableError

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

# SQLAlchemy setup
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if settings.uses_sqlite else {},
    pool_pre_ping=True,  # Good for PostgreSQL connections
    pool_recycle=300,  # Recycle connections every 5 minutes
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def enable_sqlite_foreign_keys(target_engine):
    """SQLite ignores REFERENCES clauses unless asked per connection"""

    @event.listens_for(target_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if settings.uses_sqlite:
    enable_sqlite_foreign_keys(engine)

# Supabase client setup (identity provider only)
supabase: Client = None

if settings.SUPABASE_URL and settings.SUPABASE_ANON_KEY:
    supabase = create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(session_factory=None):
    db = (session_factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_supabase() -> Client:
    """Get Supabase client for token verification"""
    if not supabase:
        raise RuntimeError(
            "Supabase client not initialized. Check your environment variables."
        )
    return supabase


def _is_transient(error: Exception) -> bool:
    if isinstance(error, (OperationalError, InterfaceError)):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated


def retry_on_disconnect(func=None, *, attempts: int = None, backoff: float = None):
    """Retry a self-contained unit of database work on infrastructure failures.

    Only wrap reads or functions that open and finish their own transaction;
    the session is rolled back between attempts.
    """

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            max_attempts = attempts or settings.DB_MAX_RETRIES
            delay = settings.DB_RETRY_BACKOFF_SECONDS if backoff is None else backoff
            last_error = None

            for attempt in range(1, max_attempts + 1):
                try:
                    return fn(*args, **kwargs)
                except DBAPIError as e:
                    if not _is_transient(e):
                        raise
                    last_error = e
                    db = getattr(args[0], "db", None) if args else None
                    if db is not None:
                        db.rollback()
                    logger.warning(
                        f"Database unavailable in {fn.__name__} "
                        f"(attempt {attempt}/{max_attempts}): {e}"
                    )
                    if attempt < max_attempts:
                        time.sleep(delay * attempt)

            raise DatabaseUnavailableError(
                f"Database unavailable after {max_attempts} attempts"
            ) from last_error

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


def init_db():
    """Initialize database tables"""
    from . import models  # noqa: F401  registers mappers

    Base.metadata.create_all(bind=engine)


def check_db_connection() -> dict:
    """Check database connectivity"""
    status = {"sqlalchemy": False, "supabase": supabase is not None}

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        status["sqlalchemy"] = True
    except DBAPIError as e:
        logger.error(f"Database health check failed: {e}")

    return status
