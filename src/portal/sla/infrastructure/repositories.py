"""
SLA Infrastructure Repositories
=================================

Concrete implementations of repository interfaces using SQLAlchemy.

This layer contains the data access logic - how we store and retrieve
entities from the database.
"""

from typing import List, Optional

from sqlalchemy import select, update, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import FlushError

from portal.config import ServiceStatus, SLAStatus
from portal.core import ConcurrentModificationException, RepositoryException
from portal.sla.application import IProjectRepository
from portal.sla.domain import DeadlineCalculator, EvaluationResult, Project, SLAConfig
from portal.sla.infrastructure.models import ProjectModel


def _utc(value):
    return DeadlineCalculator.normalize(value) if value is not None else None


class SQLAlchemyProjectRepository(IProjectRepository):
    """
    SQLAlchemy implementation of project repository.

    Handles persistence of Project entities using async SQLAlchemy.
    Writes are guarded by the ``version`` column: a save only lands if the
    row still carries the version the entity was read with.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, project_id: str) -> Optional[Project]:
        """Get project by ID."""
        stmt = (
            select(ProjectModel)
            .where(ProjectModel.id == project_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def get_for_update(self, project_id: str) -> Optional[Project]:
        """Get project by ID with SELECT ... FOR UPDATE."""
        stmt = (
            select(ProjectModel)
            .where(ProjectModel.id == project_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def create(self, project: Project) -> Project:
        """Create new project."""
        model = ProjectModel(id=project.id, **self._to_columns(project), version=project.version)
        self._session.add(model)

        try:
            await self._session.flush()
        except (IntegrityError, FlushError) as e:
            raise RepositoryException(
                f"Project {project.id} already exists",
                details={"project_id": project.id}
            ) from e

        return project

    async def save(self, project: Project) -> Project:
        """
        Persist a project with a version check.

        Raises:
            ConcurrentModificationException: no row matched (id, version)
        """
        stmt = (
            update(ProjectModel)
            .where(
                and_(
                    ProjectModel.id == project.id,
                    ProjectModel.version == project.version
                )
            )
            .values(**self._to_columns(project), version=project.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        if result.rowcount == 0:
            raise ConcurrentModificationException("Project", project.id, project.version)

        project.version += 1
        return project

    async def list(
        self,
        filters: dict,
        limit: int = 100,
        offset: int = 0
    ) -> List[Project]:
        """List projects with filters."""
        stmt = select(ProjectModel).execution_options(populate_existing=True)

        # Apply filters
        conditions = []
        if "service_status" in filters:
            status_list = filters["service_status"]
            if isinstance(status_list, list):
                conditions.append(ProjectModel.service_status.in_(status_list))
            else:
                conditions.append(ProjectModel.service_status == status_list)

        if "sla_status" in filters:
            conditions.append(ProjectModel.sla_status == filters["sla_status"])

        if conditions:
            stmt = stmt.where(and_(*conditions))

        stmt = stmt.order_by(ProjectModel.created_at.desc(), ProjectModel.id.asc())
        stmt = stmt.limit(limit).offset(offset)

        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_running(
        self,
        limit: int = 500,
        after_id: Optional[str] = None
    ) -> List[Project]:
        """List projects whose SLA clock exists and whose service isn't completed, keyed on id."""
        conditions = [
            ProjectModel.sla_days.is_not(None),
            ProjectModel.service_status != ServiceStatus.COMPLETED.value
        ]
        if after_id is not None:
            conditions.append(ProjectModel.id > after_id)

        stmt = (
            select(ProjectModel)
            .where(and_(*conditions))
            .order_by(ProjectModel.id.asc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    @staticmethod
    def _to_columns(project: Project) -> dict:
        """Flatten a Project into column values (everything except id and version)."""
        sla = project.sla
        evaluation = project.evaluation
        return {
            "title": project.title,
            "progress_percent": project.progress_percent,
            "service_status": project.service_status.value,
            "sla_days": sla.duration_days if sla else None,
            "sla_start_date": sla.start_date if sla else None,
            "sla_due_date": sla.due_date if sla else None,
            "sla_paused_at": sla.paused_at if sla else None,
            "sla_resume_offset_days": sla.accumulated_pause_days if sla else 0,
            "sla_status": evaluation.status.value if evaluation else None,
            "sla_days_remaining": evaluation.days_remaining if evaluation else None,
            "sla_expected_progress": evaluation.expected_progress_percent if evaluation else None,
            "sla_active_days_elapsed": evaluation.active_days_elapsed if evaluation else None,
            "sla_evaluated_at": project.evaluated_at,
            "created_at": project.created_at,
            "updated_at": project.updated_at,
        }

    @staticmethod
    def _to_domain(model: ProjectModel) -> Project:
        """Build a Project from its row. SQLite hands back naive datetimes; they are UTC."""
        sla = None
        if model.sla_days is not None:
            sla = SLAConfig(
                duration_days=model.sla_days,
                start_date=_utc(model.sla_start_date),
                due_date=_utc(model.sla_due_date),
                paused_at=_utc(model.sla_paused_at),
                accumulated_pause_days=model.sla_resume_offset_days or 0
            )

        evaluation = None
        if model.sla_status is not None:
            evaluation = EvaluationResult(
                status=SLAStatus(model.sla_status),
                days_remaining=model.sla_days_remaining,
                expected_progress_percent=model.sla_expected_progress,
                active_days_elapsed=model.sla_active_days_elapsed
            )

        return Project(
            id=model.id,
            title=model.title,
            service_status=ServiceStatus(model.service_status),
            progress_percent=model.progress_percent,
            sla=sla,
            evaluation=evaluation,
            evaluated_at=_utc(model.sla_evaluated_at),
            created_at=_utc(model.created_at),
            updated_at=_utc(model.updated_at),
            version=model.version
        )
