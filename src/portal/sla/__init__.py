"""
SLA Tracking Module
===================

Bounded Context for project delivery Service Level Agreements.

Responsibilities:
- Derive a project's due date from its start date and duration
- Stop the clock while an engagement is paused or awaiting payment,
  and shift the due date when it resumes
- Classify delivery health (on_track, at_risk, breached)
- Recheck all running projects on a schedule
- Provide API endpoints for operator and client views
"""

__version__ = "1.0.0"
