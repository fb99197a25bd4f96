"""
SLA Infrastructure Layer
=========================

Infrastructure implementations for SLA tracking:
- Models: SQLAlchemy ORM models
- Repositories: Data access layer
- External: Policy file watcher and scheduler
"""

from portal.sla.infrastructure.models import ProjectModel
from portal.sla.infrastructure.repositories import SQLAlchemyProjectRepository
from portal.sla.infrastructure.external import (
    PolicyFileHandler,
    SLAPolicyManager,
    SLAScheduler,
)

__all__ = [
    "ProjectModel",
    "SQLAlchemyProjectRepository",
    "PolicyFileHandler",
    "SLAPolicyManager",
    "SLAScheduler",
]
