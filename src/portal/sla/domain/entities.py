"""
SLA Domain Entities
====================

Pure Python domain entities for SLA tracking.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from portal.config import ServiceStatus, ServiceEvent, SLAStatus, FROZEN_STATUSES
from portal.sla.domain.state_machine import ServiceStateMachine, Transition
from portal.sla.domain.value_objects import SLAConfig, EvaluationResult


@dataclass
class Project:
    """
    Project entity as seen by the SLA engine.

    Holds only the fields the engine reads or writes; everything else about
    a project belongs to the portal's CRUD layer.
    """

    id: str
    title: str
    service_status: ServiceStatus = ServiceStatus.ONBOARDING
    progress_percent: int = 0

    sla: Optional[SLAConfig] = None

    # Cached evaluation
    evaluation: Optional[EvaluationResult] = None
    evaluated_at: Optional[datetime] = None

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Optimistic concurrency token, bumped by the repository on every save
    version: int = 1

    def __post_init__(self):
        """Validate project on initialization."""
        self.service_status = ServiceStatus(self.service_status)
        if not 0 <= self.progress_percent <= 100:
            raise ValueError("progress_percent must be between 0 and 100")

    @property
    def is_sla_configured(self) -> bool:
        return self.sla is not None

    @property
    def is_frozen(self) -> bool:
        """Check if the SLA clock is stopped."""
        return self.service_status in FROZEN_STATUSES

    @property
    def is_completed(self) -> bool:
        return self.service_status == ServiceStatus.COMPLETED

    @property
    def cached_status(self) -> Optional[SLAStatus]:
        return self.evaluation.status if self.evaluation else None

    def apply(self, event: ServiceEvent, now: datetime) -> Transition:
        """Apply a service event through the state machine."""
        result = ServiceStateMachine.transition(self.service_status, event, self.sla, now)
        self.service_status = result.status
        self.sla = result.config
        self.updated_at = now
        return result

    def reconfigure(self, config: SLAConfig, now: datetime) -> None:
        """
        Replace the SLA clock wholesale.

        A reset discards any open pause, so a frozen project goes back to
        active to keep ``paused_at`` and the frozen statuses in step.
        """
        self.sla = config
        if self.is_frozen:
            self.service_status = ServiceStatus.ACTIVE
        self.updated_at = now

    def record_evaluation(self, result: EvaluationResult, now: datetime) -> Optional[SLAStatus]:
        """
        Cache an evaluation result.

        Returns:
            The previously cached status (None if never evaluated)
        """
        previous = self.cached_status
        self.evaluation = result
        self.evaluated_at = now
        return previous
