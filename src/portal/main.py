"""
Portal SLA Engine - Main Application
=====================================

Tracks delivery SLAs for client portal projects.

Modules:
- SLA Tracking: due dates, pause/resume bookkeeping, health evaluation

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects, state machine
- Infrastructure: Database, policy file, scheduler
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

# Configuration and Core
from portal.config import settings
from portal.core import ApplicationException

# Infrastructure
from portal.infrastructure.database import (
    init_database, close_database, create_tables, get_session_context
)

# SLA Module
from portal.sla.application import SLAEvaluationService
from portal.sla.infrastructure import (
    SLAPolicyManager, SLAScheduler, SQLAlchemyProjectRepository
)
from portal.sla.interfaces import sla_router

# Shared
from portal.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler
)
from portal.shared.infrastructure.logging import setup_logging, get_logger, log_latency

logger = get_logger(__name__)

# Global service instances
sla_policy_manager = None
sla_scheduler = None


async def sla_evaluation_job() -> dict:
    """Background SLA recheck job: one transaction per run."""
    async with get_session_context() as session:
        service = SLAEvaluationService(
            SQLAlchemyProjectRepository(session),
            sla_policy_manager
        )
        with log_latency(logger, "sla_recheck", batch_size=settings.sla_evaluation_batch_size):
            summary = await service.evaluate_all_projects(
                datetime.now(timezone.utc),
                limit=settings.sla_evaluation_batch_size
            )

    logger.info("SLA recheck summary", extra=summary)
    return summary


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database
    3. Create database tables
    4. Load SLA policy and watch it for changes
    5. Start SLA scheduler

    SHUTDOWN:
    1. Stop SLA scheduler
    2. Stop policy watcher
    3. Close database connections
    """
    global sla_policy_manager, sla_scheduler

    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Portal SLA Engine", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()

    # Create tables (for development - use migrations in production)
    # If the database is unreachable the server still starts;
    # database-backed endpoints fail until it is back
    logger.info("Creating database tables")
    try:
        await create_tables()
    except (OSError, SQLAlchemyError) as e:
        logger.warning(f"Database not available - running in degraded mode: {e}")

    # A broken policy file aborts startup
    logger.info("Loading SLA policy")
    sla_policy_manager = SLAPolicyManager()
    sla_policy_manager.load(settings.sla_policy_path)
    sla_policy_manager.start_watching()
    app.state.policy_manager = sla_policy_manager

    if settings.sla_evaluation_interval > 0:
        sla_scheduler = SLAScheduler(interval_seconds=settings.sla_evaluation_interval)
        await sla_scheduler.start(sla_evaluation_job)
    else:
        logger.info("SLA scheduler disabled")

    logger.info("Portal SLA Engine started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Portal SLA Engine")

    if sla_scheduler:
        await sla_scheduler.stop()
        sla_scheduler = None

    if sla_policy_manager:
        sla_policy_manager.stop_watching()

    await close_database()

    logger.info("Portal SLA Engine shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Portal SLA Engine API",
    description="""
    ## Project Delivery SLA Tracking

    Computes due dates for client projects, stops the clock while an
    engagement is paused or awaiting payment, and flags projects that are
    falling behind.

    **Endpoints:**
    - `POST /sla/projects` - Register project snapshots
    - `GET /sla/projects/{id}` - SLA clock and cached evaluation
    - `PUT /sla/projects/{id}/config` - Configure or reset the SLA
    - `POST /sla/projects/{id}/activate|pause|resume|complete` - Service transitions
    - `POST /sla/projects/{id}/evaluate` - Evaluate with fresh progress
    - `GET /sla/dashboard` - Portfolio view with summary counts

    **SLA Status:**
    - `breached`: due date passed with work unfinished
    - `at_risk`: progress trails the expected pace by more than the configured gap
    - `on_track`: everything else
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)
app.state.settings = settings

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware (from shared) ===
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(sla_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service is healthy",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "sla_policy": "loaded",
                        "sla_scheduler": "running"
                    }
                }
            }
        }
    }
})
async def health_check():
    """
    Health check endpoint for load balancers and orchestrators.

    Returns service health status including:
    - SLA policy status
    - Scheduler state
    """
    checks = {
        "sla_policy": "loaded" if sla_policy_manager else "not_loaded",
        "sla_scheduler": "running" if sla_scheduler and sla_scheduler.is_running else "stopped"
    }

    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": "Portal SLA Engine",
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "sla": {
                "prefix": "/sla",
                "endpoints": [
                    "POST /sla/projects - Register project snapshots",
                    "GET /sla/projects/{id} - Get project SLA status",
                    "PUT /sla/projects/{id}/config - Configure SLA",
                    "POST /sla/projects/{id}/activate - Start work",
                    "POST /sla/projects/{id}/pause - Stop the SLA clock",
                    "POST /sla/projects/{id}/resume - Restart the SLA clock",
                    "POST /sla/projects/{id}/complete - Complete project",
                    "POST /sla/projects/{id}/evaluate - Evaluate SLA health",
                    "GET /sla/dashboard - Get dashboard"
                ]
            }
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "portal.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
