"""
SLA Infrastructure Models
==========================

SQLAlchemy ORM models for SLA module.

These are the database representations of our domain entities.
They belong in the infrastructure layer, not the domain layer.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from portal.infrastructure.database import Base
from portal.config import ServiceStatus, SLAStatus


class ProjectModel(Base):
    """
    Database model for Project entity.

    Maps to the 'projects' table. The SLA clock and the cached evaluation
    are flattened into nullable columns; ``sla_days`` being NULL means no
    SLA is configured.
    """
    __tablename__ = "projects"

    # Primary key (portal project ID)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    progress_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    service_status: Mapped[ServiceStatus] = mapped_column(
        String(50), nullable=False, index=True, default=ServiceStatus.ONBOARDING
    )

    # SLA clock
    sla_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sla_start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    sla_due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    sla_paused_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    sla_resume_offset_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Cached evaluation
    sla_status: Mapped[Optional[SLAStatus]] = mapped_column(String(50), nullable=True, index=True)
    sla_days_remaining: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sla_expected_progress: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sla_active_days_elapsed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sla_evaluated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    # Optimistic concurrency
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
