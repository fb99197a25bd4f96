"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ConcurrentModificationException(RepositoryException):
    """Raised when a row was changed by someone else since it was read."""

    def __init__(self, resource_type: str, resource_id: str, expected_version: int):
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.expected_version = expected_version
        super().__init__(
            f"{resource_type} '{resource_id}' was modified concurrently",
            {"resource_id": resource_id, "expected_version": expected_version}
        )


# ========== SLA Engine Errors ==========

class InvalidConfigurationException(ValidationException):
    """SLA duration or start date rejected at configuration time."""


class AlreadyPausedException(DomainException):
    """Pause requested while a pause is already open."""

    def __init__(self, paused_at, details: Optional[dict] = None):
        self.paused_at = paused_at
        super().__init__(
            "SLA clock is already paused",
            details or {"paused_at": paused_at.isoformat()}
        )


class NotPausedException(DomainException):
    """Resume requested while no pause is open."""

    def __init__(self, details: Optional[dict] = None):
        super().__init__("SLA clock is not paused", details)


class NotConfiguredException(DomainException):
    """Pause or resume requested for a project with no SLA configured."""

    def __init__(self, project_id: Optional[str] = None):
        self.project_id = project_id
        message = "SLA is not configured"
        if project_id:
            message += f" for project '{project_id}'"
        super().__init__(message, {"project_id": project_id} if project_id else None)


class InvalidTransitionException(DomainException):
    """Service status event not allowed from the current status."""

    def __init__(self, current_status: str, event: str):
        self.current_status = current_status
        self.event = event
        super().__init__(
            f"Cannot {event} a project in status '{current_status}'",
            {"current_status": current_status, "event": event}
        )
