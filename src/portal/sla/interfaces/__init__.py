"""
SLA Interfaces Layer
====================

Interface adapters (controllers) for SLA tracking module.

Contains:
- Controllers: FastAPI route handlers

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from portal.sla.interfaces.controllers import sla_router, get_clock, get_sla_service

__all__ = ["sla_router", "get_clock", "get_sla_service"]
