"""
SLA Application Services
=========================

Application services orchestrate business logic and coordinate between
domain entities and repositories.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations

Every mutating operation is one read-modify-write: the project is read
under a row lock, transitioned, re-evaluated, and saved with a version
check, all inside the caller's transaction.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from portal.config import ServiceEvent, ServiceStatus, SLAStatus, FREEZING_EVENTS
from portal.core.exceptions import (
    ConcurrentModificationException,
    InvalidTransitionException,
    NotConfiguredException,
    ResourceNotFoundException,
    ValidationException,
)
from portal.shared.infrastructure.logging import get_logger
from portal.sla.application.dto import IngestResponse, ProjectRegisterDTO
from portal.sla.domain import (
    DeadlineCalculator,
    EvaluationResult,
    Project,
    ServiceStateMachine,
    SLAEvaluator,
    SLAPolicy,
)

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class IProjectRepository(ABC):
    """Interface for project data access."""

    @abstractmethod
    async def get_by_id(self, project_id: str) -> Optional[Project]:
        """Get project by ID."""

    @abstractmethod
    async def get_for_update(self, project_id: str) -> Optional[Project]:
        """Get project by ID, holding a row lock until the transaction ends."""

    @abstractmethod
    async def create(self, project: Project) -> Project:
        """Create new project."""

    @abstractmethod
    async def save(self, project: Project) -> Project:
        """
        Persist a project if its version is unchanged since it was read.

        Raises:
            ConcurrentModificationException: the stored version moved on
        """

    @abstractmethod
    async def list(
        self,
        filters: dict,
        limit: int = 100,
        offset: int = 0
    ) -> List[Project]:
        """List projects with filters."""

    @abstractmethod
    async def list_running(
        self,
        limit: int = 500,
        after_id: Optional[str] = None
    ) -> List[Project]:
        """List projects with an SLA configured that are not completed, ordered by id after ``after_id``."""


class ISLAPolicyProvider(ABC):
    """Interface for SLA policy access."""

    @abstractmethod
    def get_policy(self) -> SLAPolicy:
        """Get current SLA policy."""


# ========== Application Services ==========

class SLAService:
    """
    Service for SLA configuration, service status transitions and evaluation.

    Coordinates between domain logic and data access.
    """

    def __init__(
        self,
        project_repository: IProjectRepository,
        policy_provider: ISLAPolicyProvider
    ):
        self._project_repo = project_repository
        self._policy_provider = policy_provider

    def _evaluator(self) -> SLAEvaluator:
        return SLAEvaluator(self._policy_provider.get_policy())

    async def get_project(self, project_id: str) -> Project:
        project = await self._project_repo.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundException("Project", project_id)
        return project

    async def list_projects(
        self,
        filters: dict,
        limit: int = 100,
        offset: int = 0
    ) -> List[Project]:
        return await self._project_repo.list(filters, limit=limit, offset=offset)

    async def register_projects(
        self,
        snapshots: List[ProjectRegisterDTO],
        now: datetime
    ) -> IngestResponse:
        """
        Create or refresh project snapshots.

        Existing projects get their title and progress updated and their
        cached evaluation refreshed; their service status only ever changes
        through transitions.
        """
        now = DeadlineCalculator.normalize(now)
        created = 0
        updated = 0
        errors = []

        for snapshot in snapshots:
            existing = await self._project_repo.get_for_update(snapshot.id)
            if existing is None:
                await self._project_repo.create(Project(
                    id=snapshot.id,
                    title=snapshot.title,
                    service_status=ServiceStatus(snapshot.service_status),
                    progress_percent=snapshot.progress_percent,
                    created_at=now,
                    updated_at=now
                ))
                created += 1
                continue

            existing.title = snapshot.title
            existing.progress_percent = snapshot.progress_percent
            existing.updated_at = now
            try:
                await self._refresh_and_save(existing, now)
            except ConcurrentModificationException as e:
                errors.append(f"{snapshot.id}: {e.message}")
                continue
            updated += 1

        return IngestResponse(
            created=created,
            updated=updated,
            failed=len(errors),
            errors=errors
        )

    async def configure(
        self,
        project_id: str,
        duration_days: int,
        start_date: datetime,
        now: datetime
    ) -> Project:
        """
        Set (or reset) the project's SLA clock.

        Raises:
            InvalidConfigurationException: bad duration or start date
            InvalidTransitionException: project is completed
        """
        now = DeadlineCalculator.normalize(now)
        project = await self._load_for_update(project_id)
        if project.is_completed:
            raise InvalidTransitionException(project.service_status.value, "configure")

        config = ServiceStateMachine.configure(duration_days, start_date)
        was_frozen = project.is_frozen
        project.reconfigure(config, now)
        project = await self._refresh_and_save(project, now)

        logger.info(
            "SLA configured",
            extra={
                "project_id": project_id,
                "duration_days": config.duration_days,
                "due_date": config.due_date.isoformat(),
                "discarded_pause": was_frozen
            }
        )
        return project

    async def activate(self, project_id: str, now: datetime) -> Project:
        return await self._transition(project_id, ServiceEvent.ACTIVATE, now)

    async def pause(
        self,
        project_id: str,
        now: datetime,
        event: ServiceEvent = ServiceEvent.PAUSE
    ) -> Project:
        """
        Freeze the SLA clock (paused or awaiting_payment).

        Raises:
            NotConfiguredException: no SLA configured
            AlreadyPausedException: a pause is already open
        """
        if ServiceEvent(event) not in FREEZING_EVENTS:
            raise ValidationException(f"{event} does not freeze the SLA clock")
        return await self._transition(project_id, event, now)

    async def resume(self, project_id: str, now: datetime) -> Project:
        """
        Restart the SLA clock and push the due date out by the pause length.

        Raises:
            NotConfiguredException: no SLA configured
            NotPausedException: no pause is open
        """
        return await self._transition(project_id, ServiceEvent.RESUME, now)

    async def complete(self, project_id: str, now: datetime) -> Project:
        return await self._transition(project_id, ServiceEvent.COMPLETE, now)

    async def evaluate(
        self,
        project_id: str,
        progress_percent: float,
        now: datetime
    ) -> EvaluationResult:
        """
        Evaluate SLA health with fresh progress and cache the result.

        A project without an SLA gets the neutral result.
        """
        now = DeadlineCalculator.normalize(now)
        project = await self._load_for_update(project_id)
        project.progress_percent = int(min(100.0, max(0.0, float(progress_percent))))
        project.updated_at = now
        project = await self._refresh_and_save(project, now)
        return project.evaluation

    async def _load_for_update(self, project_id: str) -> Project:
        project = await self._project_repo.get_for_update(project_id)
        if project is None:
            raise ResourceNotFoundException("Project", project_id)
        return project

    async def _transition(
        self,
        project_id: str,
        event: ServiceEvent,
        now: datetime
    ) -> Project:
        event = ServiceEvent(event)
        project = await self._load_for_update(project_id)
        previous_status = project.service_status
        now = DeadlineCalculator.normalize(now)

        if project.sla is None and (event in FREEZING_EVENTS or event == ServiceEvent.RESUME):
            raise NotConfiguredException(project_id)

        result = project.apply(event, now)
        project = await self._refresh_and_save(project, now)

        logger.info(
            "Service status changed",
            extra={
                "project_id": project_id,
                "event": event.value,
                "from_status": previous_status.value,
                "to_status": result.status.value,
                "pause_days_committed": result.pause_days_committed,
                "due_date": result.config.due_date.isoformat() if result.config else None
            }
        )
        return project

    async def _refresh_and_save(self, project: Project, now: datetime) -> Project:
        result = self._evaluator().evaluate_config(project.sla, project.progress_percent, now)
        previous = project.record_evaluation(result, now)
        project = await self._project_repo.save(project)
        _log_alert(project, result, previous)
        return project


class SLAEvaluationService:
    """
    Service for rechecking SLA health of every running project.

    Run periodically so cached statuses track the calendar even when no
    operator touches a project.
    """

    def __init__(
        self,
        project_repository: IProjectRepository,
        policy_provider: ISLAPolicyProvider
    ):
        self._project_repo = project_repository
        self._policy_provider = policy_provider

    async def evaluate_all_projects(self, now: datetime, limit: int = 500) -> dict:
        """
        Re-evaluate all running projects and cache the results.

        Projects are read in pages of ``limit`` keyed on id, so every running
        project is visited once per run however many there are. Projects
        modified concurrently are skipped; the next run picks them up.

        Returns:
            Summary of evaluation results
        """
        evaluator = SLAEvaluator(self._policy_provider.get_policy())

        evaluated = 0
        status_changes = 0
        alerts = 0
        skipped = 0
        after_id = None

        while True:
            projects = await self._project_repo.list_running(limit=limit, after_id=after_id)

            for project in projects:
                result = evaluator.evaluate_config(project.sla, project.progress_percent, now)
                previous = project.record_evaluation(result, now)

                try:
                    await self._project_repo.save(project)
                except ConcurrentModificationException:
                    skipped += 1
                    logger.warning(
                        "Project changed during recheck, skipping",
                        extra={"project_id": project.id}
                    )
                    continue

                evaluated += 1
                if previous != result.status:
                    status_changes += 1
                if _log_alert(project, result, previous):
                    alerts += 1

            if len(projects) < limit:
                break
            after_id = projects[-1].id

        return {
            "projects_evaluated": evaluated,
            "projects_skipped": skipped,
            "status_changes": status_changes,
            "alerts": alerts
        }


def _log_alert(
    project: Project,
    result: EvaluationResult,
    previous: Optional[SLAStatus]
) -> bool:
    """Emit a structured alert event when a project slips into a worse state."""
    alert_type = SLAEvaluator.should_alert(result.status, previous)
    if alert_type is None:
        return False

    logger.warning(
        "SLA alert",
        extra={
            "project_id": project.id,
            "alert_type": alert_type.value,
            "sla_status": result.status.value,
            "previous_status": previous.value if previous else None,
            "days_remaining": result.days_remaining,
            "expected_progress_percent": result.expected_progress_percent,
            "progress_percent": project.progress_percent
        }
    )
    return True
