"""
SLA Application Layer
======================

Application layer for SLA tracking module.

Contains:
- Services: Orchestrate business logic and coordinate with repositories
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from portal.sla.application.dto import (
    ProjectRegisterDTO,
    ProjectIngestRequest,
    SLAConfigureRequest,
    PauseRequest,
    EvaluateRequest,
    SLAConfigResponse,
    EvaluationResponse,
    ProjectSLAResponse,
    DashboardResponse,
    DashboardSummary,
    IngestResponse,
)
from portal.sla.application.services import (
    SLAService,
    SLAEvaluationService,
    IProjectRepository,
    ISLAPolicyProvider,
)

__all__ = [
    # DTOs
    "ProjectRegisterDTO",
    "ProjectIngestRequest",
    "SLAConfigureRequest",
    "PauseRequest",
    "EvaluateRequest",
    "SLAConfigResponse",
    "EvaluationResponse",
    "ProjectSLAResponse",
    "DashboardResponse",
    "DashboardSummary",
    "IngestResponse",
    # Services
    "SLAService",
    "SLAEvaluationService",
    # Repository Interfaces
    "IProjectRepository",
    "ISLAPolicyProvider",
]
