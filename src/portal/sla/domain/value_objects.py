"""
SLA Value Objects
==================

Immutable value objects and stateless calculators for the SLA domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared. Every calculation takes
``now`` explicitly; nothing in this module reads the wall clock.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from portal.config import SLAStatus, AlertType


ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class SLAConfig:
    """
    Per-project SLA clock configuration.

    ``due_date`` starts as ``start_date + duration_days`` and is only moved
    forward on resume. ``accumulated_pause_days`` counts closed pauses only;
    an open pause is represented by ``paused_at``.
    """
    duration_days: int
    start_date: datetime
    due_date: datetime
    paused_at: Optional[datetime] = None
    accumulated_pause_days: int = 0

    @property
    def is_paused(self) -> bool:
        return self.paused_at is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "duration_days": self.duration_days,
            "start_date": self.start_date.isoformat(),
            "due_date": self.due_date.isoformat(),
            "paused_at": self.paused_at.isoformat() if self.paused_at else None,
            "accumulated_pause_days": self.accumulated_pause_days,
        }


@dataclass(frozen=True)
class EvaluationResult:
    """
    Derived SLA health for one project at one instant.

    Cached alongside the project for display; never the source of truth.
    """
    status: SLAStatus
    days_remaining: int
    expected_progress_percent: int
    active_days_elapsed: int

    @classmethod
    def neutral(cls) -> "EvaluationResult":
        """Result reported when no SLA is configured."""
        return cls(
            status=SLAStatus.ON_TRACK,
            days_remaining=0,
            expected_progress_percent=0,
            active_days_elapsed=0
        )

    @property
    def is_breached(self) -> bool:
        return self.status == SLAStatus.BREACHED

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "days_remaining": self.days_remaining,
            "expected_progress_percent": self.expected_progress_percent,
            "active_days_elapsed": self.active_days_elapsed,
        }


class SLAPolicy(BaseModel):
    """
    SLA risk policy loaded from YAML.

    A project is at risk when its expected progress exceeds its actual
    progress by more than one of the gap thresholds (percentage points).
    """
    moderate_gap_percent: int = Field(
        default=10, ge=0, le=100,
        description="Shortfall (percentage points) above which a project is at risk"
    )
    severe_gap_percent: int = Field(
        default=25, ge=0, le=100,
        description="Shortfall (percentage points) considered a large slip"
    )

    @model_validator(mode="after")
    def validate_threshold_order(self) -> "SLAPolicy":
        if self.severe_gap_percent < self.moderate_gap_percent:
            raise ValueError("severe_gap_percent must be >= moderate_gap_percent")
        return self


class DeadlineCalculator:
    """
    Pure date arithmetic for SLA deadlines.

    Days are calendar days (weekends count) of exactly 24 hours in UTC.
    """

    @staticmethod
    def normalize(value: datetime) -> datetime:
        """Return ``value`` as an aware UTC datetime (naive input is taken as UTC)."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @staticmethod
    def days_between(start: datetime, end: datetime) -> int:
        """Signed count of whole days from ``start`` to ``end``, truncated toward zero."""
        delta = DeadlineCalculator.normalize(end) - DeadlineCalculator.normalize(start)
        whole_days = abs(delta) // ONE_DAY
        return whole_days if delta >= timedelta(0) else -whole_days

    @staticmethod
    def pause_length_days(paused_at: datetime, resumed_at: datetime) -> int:
        """
        Whole days protected by a closed pause.

        Partial days round up, so a pause of a few hours protects one day.
        A resume stamped at or before the pause (clock skew) protects none.
        """
        delta = DeadlineCalculator.normalize(resumed_at) - DeadlineCalculator.normalize(paused_at)
        if delta <= timedelta(0):
            return 0
        whole_days, remainder = divmod(delta, ONE_DAY)
        return whole_days + (1 if remainder else 0)

    @staticmethod
    def compute_due_date(start_date: datetime, duration_days: int) -> datetime:
        """Due date ``duration_days`` calendar days after ``start_date``."""
        return start_date + timedelta(days=duration_days)

    @staticmethod
    def shift_due_date(due_date: datetime, pause_duration_days: int) -> datetime:
        """Move ``due_date`` forward by the length of a closed pause."""
        return due_date + timedelta(days=pause_duration_days)

    @staticmethod
    def active_days_elapsed(
        now: datetime,
        start_date: datetime,
        accumulated_pause_days: int,
        paused_at: Optional[datetime] = None
    ) -> int:
        """
        Days the clock has actually run since ``start_date``.

        An open pause is estimated up to ``now`` but not committed; that only
        happens on resume. Clamped at zero for future start dates and skew.
        """
        current_pause_days = (
            max(0, DeadlineCalculator.days_between(paused_at, now)) if paused_at else 0
        )
        elapsed = (
            DeadlineCalculator.days_between(start_date, now)
            - accumulated_pause_days
            - current_pause_days
        )
        return max(0, elapsed)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class SLAEvaluator:
    """
    Classifies engagement health from progress and the SLA clock.

    Stateless apart from the risk policy, which defaults to the standard
    10 / 25 point thresholds.
    """

    def __init__(self, policy: Optional[SLAPolicy] = None):
        self._policy = policy or SLAPolicy()

    @property
    def policy(self) -> SLAPolicy:
        return self._policy

    def evaluate(
        self,
        progress_percent: float,
        duration_days: Optional[int],
        start_date: Optional[datetime],
        due_date: Optional[datetime],
        paused_at: Optional[datetime],
        accumulated_pause_days: int,
        now: datetime
    ) -> EvaluationResult:
        """
        Evaluate SLA health at ``now``.

        Returns:
            EvaluationResult; the neutral result when no SLA is configured
        """
        if not duration_days or duration_days <= 0 or start_date is None or due_date is None:
            return EvaluationResult.neutral()

        now = DeadlineCalculator.normalize(now)
        due_date = DeadlineCalculator.normalize(due_date)
        progress = min(100.0, max(0.0, float(progress_percent)))

        days_remaining = DeadlineCalculator.days_between(now, due_date)
        active_days = DeadlineCalculator.active_days_elapsed(
            now, start_date, accumulated_pause_days or 0, paused_at
        )

        # Breach overrides every other signal
        if now > due_date and progress < 100:
            return EvaluationResult(
                status=SLAStatus.BREACHED,
                days_remaining=days_remaining,
                expected_progress_percent=100,
                active_days_elapsed=active_days
            )

        expected = min(100, max(0, _round_half_up(100 * active_days / duration_days)))
        gap = expected - progress

        if gap > self._policy.severe_gap_percent:
            status = SLAStatus.AT_RISK
        elif gap > self._policy.moderate_gap_percent:
            # TODO: give moderate slips their own status once the portal has a high-risk badge
            status = SLAStatus.AT_RISK
        else:
            status = SLAStatus.ON_TRACK

        return EvaluationResult(
            status=status,
            days_remaining=days_remaining,
            expected_progress_percent=expected,
            active_days_elapsed=active_days
        )

    def evaluate_config(
        self,
        config: Optional[SLAConfig],
        progress_percent: float,
        now: datetime
    ) -> EvaluationResult:
        """Evaluate a project's SLAConfig (or lack of one)."""
        if config is None:
            return EvaluationResult.neutral()
        return self.evaluate(
            progress_percent,
            config.duration_days,
            config.start_date,
            config.due_date,
            config.paused_at,
            config.accumulated_pause_days,
            now
        )

    @staticmethod
    def should_alert(
        current_status: SLAStatus,
        previous_status: Optional[SLAStatus] = None
    ) -> Optional[AlertType]:
        """
        Determine if a status change warrants an alert.

        Returns:
            AlertType if alert needed, None otherwise
        """
        if current_status == SLAStatus.BREACHED:
            if previous_status != SLAStatus.BREACHED:
                return AlertType.BREACH
        elif current_status == SLAStatus.AT_RISK:
            if previous_status not in (SLAStatus.AT_RISK, SLAStatus.BREACHED):
                return AlertType.WARNING

        return None
