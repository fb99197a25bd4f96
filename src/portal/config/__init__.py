"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="portal-sla", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/portal",
        description="Database connection URL (async driver)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== SLA Engine ==========
    sla_policy_path: Path = Field(
        default=Path("sla_policy.yaml"),
        description="Path to SLA policy YAML file (risk thresholds)"
    )
    sla_evaluation_interval: int = Field(
        default=3600,
        description="Seconds between scheduled SLA rechecks (0 disables the scheduler)",
        ge=0
    )
    sla_evaluation_batch_size: int = Field(
        default=500,
        description="Max projects loaded per scheduled recheck",
        ge=1
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class ServiceStatus(str, Enum):
    """Operational state of a project engagement."""
    ONBOARDING = "onboarding"
    ACTIVE = "active"
    PAUSED = "paused"
    AWAITING_PAYMENT = "awaiting_payment"
    COMPLETED = "completed"


class ServiceEvent(str, Enum):
    """Operator or billing events that drive service status transitions."""
    ACTIVATE = "activate"
    PAUSE = "pause"
    AWAIT_PAYMENT = "await_payment"
    RESUME = "resume"
    COMPLETE = "complete"


class SLAStatus(str, Enum):
    """Engagement health as reported by the SLA evaluator."""
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    BREACHED = "breached"


class AlertType(str, Enum):
    """SLA alert types."""
    WARNING = "warning"
    BREACH = "breach"


# Statuses that stop the SLA clock
FROZEN_STATUSES = frozenset({ServiceStatus.PAUSED, ServiceStatus.AWAITING_PAYMENT})

# Events that stop the SLA clock
FREEZING_EVENTS = {
    ServiceEvent.PAUSE: ServiceStatus.PAUSED,
    ServiceEvent.AWAIT_PAYMENT: ServiceStatus.AWAITING_PAYMENT,
}

