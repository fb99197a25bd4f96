"""Shared fixtures: fixed clocks, an in-memory project repository, and a SQLite database."""
import copy
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest
import pytest_asyncio

from portal.config import ServiceStatus
from portal.core import ConcurrentModificationException, RepositoryException
from portal.infrastructure.database import (
    close_database, create_tables, get_session_context, init_database
)
from portal.sla.application import IProjectRepository, ISLAPolicyProvider, SLAService
from portal.sla.domain import Project, SLAPolicy


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


class InMemoryProjectRepository(IProjectRepository):
    """Dict-backed repository with the same version check as the SQL one."""

    def __init__(self):
        self.rows: Dict[str, Project] = {}

    async def get_by_id(self, project_id: str) -> Optional[Project]:
        row = self.rows.get(project_id)
        return copy.deepcopy(row) if row else None

    async def get_for_update(self, project_id: str) -> Optional[Project]:
        return await self.get_by_id(project_id)

    async def create(self, project: Project) -> Project:
        if project.id in self.rows:
            raise RepositoryException(f"Project {project.id} already exists")
        self.rows[project.id] = copy.deepcopy(project)
        return project

    async def save(self, project: Project) -> Project:
        stored = self.rows.get(project.id)
        if stored is None or stored.version != project.version:
            raise ConcurrentModificationException("Project", project.id, project.version)
        project.version += 1
        self.rows[project.id] = copy.deepcopy(project)
        return project

    async def list(self, filters: dict, limit: int = 100, offset: int = 0) -> List[Project]:
        rows = list(self.rows.values())
        if "service_status" in filters:
            rows = [p for p in rows if p.service_status.value == filters["service_status"]]
        if "sla_status" in filters:
            rows = [
                p for p in rows
                if p.cached_status is not None and p.cached_status.value == filters["sla_status"]
            ]
        return [copy.deepcopy(p) for p in rows[offset:offset + limit]]

    async def list_running(self, limit: int = 500, after_id: Optional[str] = None) -> List[Project]:
        rows = [
            p for _, p in sorted(self.rows.items())
            if p.sla is not None and p.service_status != ServiceStatus.COMPLETED
            and (after_id is None or p.id > after_id)
        ]
        return [copy.deepcopy(p) for p in rows[:limit]]


class StaticPolicyProvider(ISLAPolicyProvider):
    def __init__(self, policy: Optional[SLAPolicy] = None):
        self.policy = policy or SLAPolicy()

    def get_policy(self) -> SLAPolicy:
        return self.policy


@pytest.fixture
def project_repo() -> InMemoryProjectRepository:
    return InMemoryProjectRepository()


@pytest.fixture
def policy_provider() -> StaticPolicyProvider:
    return StaticPolicyProvider()


@pytest.fixture
def sla_service(project_repo, policy_provider) -> SLAService:
    return SLAService(project_repo, policy_provider)


@pytest.fixture
def seed_project(project_repo):
    """Insert a project straight into the in-memory repository."""
    def _seed(project_id: str = "PRJ-001", status: ServiceStatus = ServiceStatus.ACTIVE, progress: int = 0):
        project = Project(
            id=project_id,
            title=f"Project {project_id}",
            service_status=status,
            progress_percent=progress,
            created_at=utc(2023, 12, 15),
            updated_at=utc(2023, 12, 15)
        )
        project_repo.rows[project_id] = project
        return project
    return _seed


@pytest_asyncio.fixture
async def db_session(tmp_path):
    """Session on a throwaway SQLite file; committed when the test finishes."""
    init_database(f"sqlite+aiosqlite:///{tmp_path / 'portal.db'}")
    await create_tables()
    try:
        async with get_session_context() as session:
            yield session
    finally:
        await close_database()
