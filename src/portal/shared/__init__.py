"""
Shared Kernel Module
====================

Generic infrastructure shared across bounded contexts: structured
logging, HTTP middleware, and exception handlers.

Architecture Pattern: Modular Monolith
- Each module (currently only sla) is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add SLA business logic to the shared kernel.
"""

__version__ = "1.0.0"
