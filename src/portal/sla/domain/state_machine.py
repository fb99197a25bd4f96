"""
Service State Machine
=====================

Single owner of pause/resume bookkeeping for a project engagement.

    onboarding -> active <-> {paused, awaiting_payment} -> active -> completed

``paused`` and ``awaiting_payment`` freeze the SLA clock. Freezing opens a
pause on the SLAConfig; resuming closes it, adds its whole-day length to the
accumulated offset and shifts the due date by the same amount.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Optional, Tuple

from portal.config import (
    ServiceStatus, ServiceEvent, FROZEN_STATUSES, FREEZING_EVENTS
)
from portal.core.exceptions import (
    AlreadyPausedException,
    InvalidConfigurationException,
    InvalidTransitionException,
    NotConfiguredException,
    NotPausedException,
)
from portal.sla.domain.value_objects import DeadlineCalculator, SLAConfig


@dataclass(frozen=True)
class Transition:
    """Outcome of applying a service event."""
    status: ServiceStatus
    config: Optional[SLAConfig]
    pause_days_committed: int = 0


TRANSITIONS: Dict[Tuple[ServiceStatus, ServiceEvent], ServiceStatus] = {
    (ServiceStatus.ONBOARDING, ServiceEvent.ACTIVATE): ServiceStatus.ACTIVE,
    (ServiceStatus.ACTIVE, ServiceEvent.PAUSE): ServiceStatus.PAUSED,
    (ServiceStatus.ACTIVE, ServiceEvent.AWAIT_PAYMENT): ServiceStatus.AWAITING_PAYMENT,
    (ServiceStatus.PAUSED, ServiceEvent.RESUME): ServiceStatus.ACTIVE,
    (ServiceStatus.AWAITING_PAYMENT, ServiceEvent.RESUME): ServiceStatus.ACTIVE,
    (ServiceStatus.ACTIVE, ServiceEvent.COMPLETE): ServiceStatus.COMPLETED,
    (ServiceStatus.PAUSED, ServiceEvent.COMPLETE): ServiceStatus.COMPLETED,
    (ServiceStatus.AWAITING_PAYMENT, ServiceEvent.COMPLETE): ServiceStatus.COMPLETED,
}


class ServiceStateMachine:
    """
    Pure transition logic for service status and the SLA clock.

    Never reads the wall clock and never persists; callers pass ``now`` and
    store the returned config.
    """

    @staticmethod
    def configure(duration_days: int, start_date: datetime) -> SLAConfig:
        """
        Build a fresh SLAConfig.

        Discards any open pause and zeroes the accumulated offset.

        Raises:
            InvalidConfigurationException: duration not a positive int or start not a datetime
        """
        if isinstance(duration_days, bool) or not isinstance(duration_days, int) or duration_days <= 0:
            raise InvalidConfigurationException(
                "duration_days must be a positive integer",
                {"duration_days": duration_days}
            )
        if not isinstance(start_date, datetime):
            raise InvalidConfigurationException(
                "start_date must be a timestamp",
                {"start_date": str(start_date)}
            )

        start = DeadlineCalculator.normalize(start_date)
        return SLAConfig(
            duration_days=duration_days,
            start_date=start,
            due_date=DeadlineCalculator.compute_due_date(start, duration_days),
            paused_at=None,
            accumulated_pause_days=0
        )

    @staticmethod
    def pause(config: SLAConfig, now: datetime) -> SLAConfig:
        """
        Open a pause at ``now``.

        Raises:
            AlreadyPausedException: a pause is already open
        """
        if config.paused_at is not None:
            raise AlreadyPausedException(config.paused_at)
        return replace(config, paused_at=DeadlineCalculator.normalize(now))

    @staticmethod
    def resume(config: SLAConfig, now: datetime) -> SLAConfig:
        """
        Close the open pause and shift the due date by its whole-day length.

        Raises:
            NotPausedException: no pause is open
        """
        if config.paused_at is None:
            raise NotPausedException({"due_date": config.due_date.isoformat()})

        pause_days = DeadlineCalculator.pause_length_days(config.paused_at, now)
        return replace(
            config,
            due_date=DeadlineCalculator.shift_due_date(config.due_date, pause_days),
            accumulated_pause_days=config.accumulated_pause_days + pause_days,
            paused_at=None
        )

    @classmethod
    def transition(
        cls,
        status: ServiceStatus,
        event: ServiceEvent,
        config: Optional[SLAConfig],
        now: datetime
    ) -> Transition:
        """
        Apply ``event`` to a project in ``status``.

        Raises:
            NotConfiguredException: pause/resume with no SLA configured
            AlreadyPausedException: freezing event while a pause is open
            NotPausedException: resume with no open pause
            InvalidTransitionException: event not allowed from ``status``
        """
        status = ServiceStatus(status)
        event = ServiceEvent(event)

        if event in FREEZING_EVENTS:
            if config is None:
                raise NotConfiguredException()
            if config.paused_at is not None:
                raise AlreadyPausedException(config.paused_at)
            target = cls._target(status, event)
            return Transition(status=target, config=cls.pause(config, now))

        if event == ServiceEvent.RESUME:
            if config is None:
                raise NotConfiguredException()
            if config.paused_at is None:
                raise NotPausedException({"current_status": status.value})
            target = cls._target(status, event)
            resumed = cls.resume(config, now)
            return Transition(
                status=target,
                config=resumed,
                pause_days_committed=resumed.accumulated_pause_days - config.accumulated_pause_days
            )

        target = cls._target(status, event)
        if event == ServiceEvent.COMPLETE and config is not None and config.paused_at is not None:
            # Open pause is dropped without being accumulated
            config = replace(config, paused_at=None)
        return Transition(status=target, config=config)

    @staticmethod
    def _target(status: ServiceStatus, event: ServiceEvent) -> ServiceStatus:
        target = TRANSITIONS.get((status, event))
        if target is None:
            raise InvalidTransitionException(status.value, event.value)
        return target

    @staticmethod
    def is_frozen(status: ServiceStatus) -> bool:
        return ServiceStatus(status) in FROZEN_STATUSES
