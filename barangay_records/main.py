from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
import logging
import atexit

from . import routers
from .config import settings
from .database import init_db, check_db_connection
from .utils.background_tasks import (
    scheduler,
    start_background_tasks,
    stop_background_tasks,
)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Barangay Records API",
    description="Household and resident records for barangay governments",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Create tables and start the dashboard refresh scheduler"""
    logger.info("Starting Barangay Records API...")
    init_db()
    if settings.ENABLE_BACKGROUND_TASKS:
        start_background_tasks()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Stopping background tasks...")
    stop_background_tasks()


# Include routers
app.include_router(routers.households.router, prefix="/api")
app.include_router(routers.residents.router, prefix="/api")
app.include_router(routers.dashboard.router, prefix="/api")
app.include_router(routers.users.router, prefix="/api")
app.include_router(routers.geography.router, prefix="/api")

atexit.register(stop_background_tasks)


@app.get("/")
async def root():
    return {"message": "Welcome to Barangay Records API", "status": "running"}


@app.get("/health")
async def health_check():
    connections = check_db_connection()
    return {
        "status": "healthy" if connections["sqlalchemy"] else "degraded",
        "service": "barangay-records-api",
        "version": "1.0.0",
        "connections": connections,
        "scheduler": scheduler.get_status(),
    }


if __name__ == "__main__":
    uvicorn.run("barangay_records.main:app", host="0.0.0.0", port=8000, reload=True)
