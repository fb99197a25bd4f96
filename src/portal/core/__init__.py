"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from portal.core.exceptions import (
    ApplicationException,
    DomainException,
    RepositoryException,
    ValidationException,
    ResourceNotFoundException,
    ConfigurationException,
    ConcurrentModificationException,
    InvalidConfigurationException,
    AlreadyPausedException,
    NotPausedException,
    NotConfiguredException,
    InvalidTransitionException,
)

__all__ = [
    "ApplicationException",
    "DomainException",
    "RepositoryException",
    "ValidationException",
    "ResourceNotFoundException",
    "ConfigurationException",
    "ConcurrentModificationException",
    "InvalidConfigurationException",
    "AlreadyPausedException",
    "NotPausedException",
    "NotConfiguredException",
    "InvalidTransitionException",
]
