"""
JetSuite Portal - SLA Engine
============================

Project delivery SLA tracking for the client/admin business portal.

Packages:
- config: Settings and shared constants
- core: Exception taxonomy
- shared: Logging and HTTP middleware (shared kernel)
- infrastructure: Database engine and sessions
- sla: SLA bounded context (domain, application, infrastructure, interfaces)
"""

__version__ = "1.0.0"
