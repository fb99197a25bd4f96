"""
SLA Controllers (API Routes)
=============================

FastAPI routes for SLA tracking endpoints.

Controllers are thin - they delegate to application services. Application
exceptions raised by the services are translated to HTTP responses by the
handler registered in ``portal.main``.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from portal.config import settings, ServiceEvent, SLAStatus, FROZEN_STATUSES
from portal.infrastructure.database import get_session
from portal.shared.infrastructure.logging import get_logger
from portal.sla.application import (
    SLAService,
    ISLAPolicyProvider,
    ProjectIngestRequest,
    SLAConfigureRequest,
    PauseRequest,
    EvaluateRequest,
    ProjectSLAResponse,
    EvaluationResponse,
    DashboardResponse,
    DashboardSummary,
    IngestResponse,
)
from portal.sla.application.dto import ServiceStatusStr, SLAStatusStr
from portal.sla.infrastructure import SQLAlchemyProjectRepository, SLAPolicyManager

logger = get_logger(__name__)
router = APIRouter(prefix="/sla", tags=["SLA Tracking"])


# ========== Example payloads for Swagger ==========

PROJECT_SLA_RESPONSE_EXAMPLE = {
    "project_id": "PRJ-001",
    "title": "Marketing site rebuild",
    "service_status": "active",
    "progress_percent": 10,
    "sla": {
        "duration_days": 30,
        "start_date": "2024-01-01T00:00:00Z",
        "due_date": "2024-02-05T00:00:00Z",
        "paused_at": None,
        "accumulated_pause_days": 5
    },
    "evaluation": {
        "status": "at_risk",
        "days_remaining": 16,
        "expected_progress_percent": 47,
        "active_days_elapsed": 14,
        "evaluated_at": "2024-01-20T00:00:00Z"
    },
    "version": 4
}

ERROR_RESPONSE_EXAMPLE = {
    "error": "AlreadyPausedException",
    "detail": "SLA clock is already paused",
    "details": {"paused_at": "2024-01-10T00:00:00+00:00"},
    "correlation_id": "2f1c9a5e-0d0b-4a53-9a51-0f4d3d7a7c11"
}


# ========== Dependencies ==========

def get_clock() -> datetime:
    """Current wall-clock time (UTC). Overridden in tests."""
    return datetime.now(timezone.utc)


def get_policy_provider(request: Request) -> ISLAPolicyProvider:
    """Policy manager started by the app lifespan, loaded on demand when lifespan is off."""
    manager = getattr(request.app.state, "policy_manager", None)
    if manager is None:
        manager = SLAPolicyManager()
        manager.load(settings.sla_policy_path)
        request.app.state.policy_manager = manager
    return manager


async def get_sla_service(
    session: AsyncSession = Depends(get_session),
    policy_provider: ISLAPolicyProvider = Depends(get_policy_provider)
) -> SLAService:
    """Get SLA service instance bound to the request's session."""
    return SLAService(SQLAlchemyProjectRepository(session), policy_provider)


# ========== Route Handlers ==========

@router.post(
    "/projects",
    response_model=IngestResponse,
    summary="Register projects for SLA tracking",
    description="""
    Register or refresh a batch of project snapshots.

    **Idempotent**: projects are identified by `id`. Existing projects get
    their `title` and `progress_percent` updated; their service status is
    only ever changed through the transition endpoints.
    """
)
async def register_projects(
    request: ProjectIngestRequest,
    sla_service: SLAService = Depends(get_sla_service),
    now: datetime = Depends(get_clock)
):
    result = await sla_service.register_projects(request.projects, now)

    logger.info(
        "Project registration complete",
        extra={
            "projects_created": result.created,
            "projects_updated": result.updated,
            "projects_failed": result.failed
        }
    )
    return result


@router.get(
    "/projects/{project_id}",
    response_model=ProjectSLAResponse,
    summary="Get project SLA status",
    responses={
        200: {"content": {"application/json": {"example": PROJECT_SLA_RESPONSE_EXAMPLE}}},
        404: {"description": "Project not found"}
    }
)
async def get_project_sla(
    project_id: str,
    sla_service: SLAService = Depends(get_sla_service)
):
    project = await sla_service.get_project(project_id)
    return ProjectSLAResponse.from_domain(project)


@router.put(
    "/projects/{project_id}/config",
    response_model=ProjectSLAResponse,
    summary="Configure or reset a project's SLA",
    description="""
    Set the SLA duration and start date. The due date is recomputed from
    scratch: accumulated pause days are reset to zero and any open pause is
    discarded (a paused project goes back to `active`).
    """,
    responses={
        404: {"description": "Project not found"},
        409: {"description": "Project is completed"},
        422: {"description": "Invalid duration or start date"}
    }
)
async def configure_sla(
    project_id: str,
    request: SLAConfigureRequest,
    sla_service: SLAService = Depends(get_sla_service),
    now: datetime = Depends(get_clock)
):
    project = await sla_service.configure(
        project_id, request.duration_days, request.start_date, now
    )
    return ProjectSLAResponse.from_domain(project)


@router.post(
    "/projects/{project_id}/activate",
    response_model=ProjectSLAResponse,
    summary="Start work on an onboarding project"
)
async def activate_project(
    project_id: str,
    sla_service: SLAService = Depends(get_sla_service),
    now: datetime = Depends(get_clock)
):
    project = await sla_service.activate(project_id, now)
    return ProjectSLAResponse.from_domain(project)


@router.post(
    "/projects/{project_id}/pause",
    response_model=ProjectSLAResponse,
    summary="Stop the SLA clock",
    description="""
    Freeze the SLA clock. `reason` selects the frozen status:
    `paused` (default) or `awaiting_payment`.
    """,
    responses={
        409: {
            "description": "Already paused, no SLA configured, or invalid transition",
            "content": {"application/json": {"example": ERROR_RESPONSE_EXAMPLE}}
        }
    }
)
async def pause_project(
    project_id: str,
    request: Optional[PauseRequest] = None,
    sla_service: SLAService = Depends(get_sla_service),
    now: datetime = Depends(get_clock)
):
    reason = request.reason if request else "paused"
    event = ServiceEvent.PAUSE if reason == "paused" else ServiceEvent.AWAIT_PAYMENT
    project = await sla_service.pause(project_id, now, event=event)
    return ProjectSLAResponse.from_domain(project)


@router.post(
    "/projects/{project_id}/resume",
    response_model=ProjectSLAResponse,
    summary="Restart the SLA clock",
    description="Closes the open pause and pushes the due date out by its length in whole days.",
    responses={409: {"description": "Not paused or no SLA configured"}}
)
async def resume_project(
    project_id: str,
    sla_service: SLAService = Depends(get_sla_service),
    now: datetime = Depends(get_clock)
):
    project = await sla_service.resume(project_id, now)
    return ProjectSLAResponse.from_domain(project)


@router.post(
    "/projects/{project_id}/complete",
    response_model=ProjectSLAResponse,
    summary="Mark a project as completed"
)
async def complete_project(
    project_id: str,
    sla_service: SLAService = Depends(get_sla_service),
    now: datetime = Depends(get_clock)
):
    project = await sla_service.complete(project_id, now)
    return ProjectSLAResponse.from_domain(project)


@router.post(
    "/projects/{project_id}/evaluate",
    response_model=EvaluationResponse,
    summary="Evaluate SLA health with fresh progress"
)
async def evaluate_project(
    project_id: str,
    request: EvaluateRequest,
    sla_service: SLAService = Depends(get_sla_service),
    now: datetime = Depends(get_clock)
):
    result = await sla_service.evaluate(project_id, request.progress_percent, now)
    return EvaluationResponse(**result.to_dict(), evaluated_at=now)


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Get SLA dashboard",
    description="""
    Projects with their cached SLA evaluation, plus summary counts for
    the returned page.

    **Query Parameters:**
    - `service_status`: onboarding, active, paused, awaiting_payment, completed
    - `sla_status`: on_track, at_risk, breached
    - `limit`: Results per page (default: 100, max: 1000)
    - `offset`: Page offset for pagination (default: 0)
    """
)
async def get_dashboard(
    service_status: Optional[ServiceStatusStr] = Query(None, description="Filter by service status"),
    sla_status: Optional[SLAStatusStr] = Query(None, description="Filter by cached SLA status"),
    limit: int = Query(100, ge=1, le=1000, description="Results per page"),
    offset: int = Query(0, ge=0, description="Page offset"),
    sla_service: SLAService = Depends(get_sla_service)
):
    filters = {}
    if service_status:
        filters["service_status"] = service_status
    if sla_status:
        filters["sla_status"] = sla_status

    projects = await sla_service.list_projects(filters, limit=limit, offset=offset)

    state_counts = {s: 0 for s in SLAStatus}
    frozen_count = 0
    for project in projects:
        if project.cached_status is not None:
            state_counts[project.cached_status] += 1
        if project.service_status in FROZEN_STATUSES:
            frozen_count += 1

    total_count = len(projects)
    breached = state_counts[SLAStatus.BREACHED]
    breach_rate = (breached / total_count * 100) if total_count > 0 else 0.0

    return DashboardResponse(
        projects=[ProjectSLAResponse.from_domain(p) for p in projects],
        total_count=total_count,
        summary=DashboardSummary(
            total_projects=total_count,
            breached_count=breached,
            at_risk_count=state_counts[SLAStatus.AT_RISK],
            on_track_count=state_counts[SLAStatus.ON_TRACK],
            frozen_count=frozen_count,
            breach_rate=round(breach_rate, 2)
        )
    )


# Export router for inclusion in main app
sla_router = router
