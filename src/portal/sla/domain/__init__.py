"""
SLA Domain Layer
================

Domain layer for the SLA tracking module.

Contains:
- Entities: Core business objects with identity (Project)
- Value Objects: Immutable objects defined by attributes (SLAConfig, EvaluationResult, SLAPolicy)
- Domain Services: Stateless business logic (DeadlineCalculator, SLAEvaluator, ServiceStateMachine)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from portal.sla.domain.entities import Project
from portal.sla.domain.state_machine import ServiceStateMachine, Transition, TRANSITIONS
from portal.sla.domain.value_objects import (
    DeadlineCalculator,
    EvaluationResult,
    SLAConfig,
    SLAEvaluator,
    SLAPolicy,
)

__all__ = [
    # Entities
    "Project",
    # Value Objects & Services
    "DeadlineCalculator",
    "EvaluationResult",
    "SLAConfig",
    "SLAEvaluator",
    "SLAPolicy",
    "ServiceStateMachine",
    "Transition",
    "TRANSITIONS",
]
