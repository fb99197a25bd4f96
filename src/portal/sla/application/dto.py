"""
SLA Application DTOs
=====================

Data Transfer Objects for SLA API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses. Following YAGNI - only what's needed.
"""

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field


# ========== Type Aliases for Literals ==========
ServiceStatusStr = Literal["onboarding", "active", "paused", "awaiting_payment", "completed"]
InitialServiceStatusStr = Literal["onboarding", "active"]
PauseReasonStr = Literal["paused", "awaiting_payment"]
SLAStatusStr = Literal["on_track", "at_risk", "breached"]


# ========== Request DTOs ==========

class ProjectRegisterDTO(BaseModel):
    """Snapshot of a portal project to track."""
    id: str = Field(..., min_length=1, max_length=64, description="Portal project ID")
    title: str = Field(..., min_length=1, description="Project title")
    progress_percent: int = Field(default=0, ge=0, le=100, description="Completion percentage")
    service_status: InitialServiceStatusStr = Field(
        default="onboarding",
        description="Initial service status (new projects only)"
    )


class ProjectIngestRequest(BaseModel):
    """Request model for project registration."""
    projects: List[ProjectRegisterDTO] = Field(
        ...,
        description="List of projects to register or refresh"
    )


class SLAConfigureRequest(BaseModel):
    """Request model for (re)configuring a project's SLA."""
    # Range checks live in the domain so every caller gets the same error
    duration_days: int = Field(..., description="Calendar days allotted once work is active")
    start_date: datetime = Field(..., description="When the SLA clock starts")


class PauseRequest(BaseModel):
    """Request model for freezing the SLA clock."""
    reason: PauseReasonStr = Field(
        default="paused",
        description="Frozen status to enter: paused or awaiting_payment"
    )


class EvaluateRequest(BaseModel):
    """Request model for an on-demand SLA evaluation."""
    progress_percent: float = Field(..., description="Current completion percentage (clamped to 0-100)")


# ========== Response DTOs ==========

class SLAConfigResponse(BaseModel):
    """Response model for a project's SLA clock."""
    duration_days: int
    start_date: datetime
    due_date: datetime = Field(..., description="Due date after pause offsets")
    paused_at: Optional[datetime] = Field(None, description="Start of the open pause, if any")
    accumulated_pause_days: int = Field(..., description="Whole days from closed pauses")


class EvaluationResponse(BaseModel):
    """Response model for an SLA evaluation."""
    status: SLAStatusStr
    days_remaining: int = Field(..., description="Negative once the due date has passed")
    expected_progress_percent: int
    active_days_elapsed: int
    evaluated_at: Optional[datetime] = None


class ProjectSLAResponse(BaseModel):
    """Response model for project SLA information."""
    project_id: str
    title: str
    service_status: ServiceStatusStr
    progress_percent: int
    sla: Optional[SLAConfigResponse] = Field(None, description="Null when no SLA is configured")
    evaluation: Optional[EvaluationResponse] = Field(None, description="Cached evaluation")
    version: int

    @classmethod
    def from_domain(cls, project: Any) -> "ProjectSLAResponse":
        """Create from a domain Project."""
        sla = None
        if project.sla is not None:
            sla = SLAConfigResponse(**project.sla.to_dict())

        evaluation = None
        if project.evaluation is not None:
            evaluation = EvaluationResponse(
                **project.evaluation.to_dict(),
                evaluated_at=project.evaluated_at
            )

        return cls(
            project_id=project.id,
            title=project.title,
            service_status=project.service_status.value,
            progress_percent=project.progress_percent,
            sla=sla,
            evaluation=evaluation,
            version=project.version
        )


class DashboardSummary(BaseModel):
    """Summary statistics for dashboard."""
    total_projects: int
    breached_count: int
    at_risk_count: int
    on_track_count: int
    frozen_count: int = Field(..., description="Projects paused or awaiting payment")
    breach_rate: float = Field(..., description="Percentage of projects breached")


class DashboardResponse(BaseModel):
    """Response model for dashboard."""
    projects: List[ProjectSLAResponse] = Field(..., description="List of projects")
    total_count: int = Field(..., description="Number of projects in this page")
    summary: DashboardSummary = Field(..., description="Summary statistics")


class IngestResponse(BaseModel):
    """Response model for project registration."""
    created: int = Field(..., description="Number of new projects created")
    updated: int = Field(..., description="Number of existing projects updated")
    failed: int = Field(default=0, description="Number of failed registrations")
    errors: List[str] = Field(default_factory=list, description="Error messages")
