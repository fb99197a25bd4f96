"""Tests for SLA health classification."""
from datetime import datetime

import pytest
from pydantic import ValidationError

from portal.config import AlertType, SLAStatus
from portal.sla.domain import EvaluationResult, SLAEvaluator, SLAPolicy, ServiceStateMachine
from tests.conftest import utc


@pytest.fixture
def evaluator():
    return SLAEvaluator()


@pytest.fixture
def resumed_config():
    """30-day SLA from 2024-01-01, paused 01-10 and resumed 01-15."""
    config = ServiceStateMachine.configure(30, utc(2024, 1, 1))
    config = ServiceStateMachine.pause(config, utc(2024, 1, 10))
    return ServiceStateMachine.resume(config, utc(2024, 1, 15))


def test_lagging_project_after_a_pause_is_at_risk(evaluator, resumed_config):
    result = evaluator.evaluate_config(resumed_config, 10, utc(2024, 1, 20))

    assert result.status == SLAStatus.AT_RISK
    assert result.active_days_elapsed == 14
    assert result.expected_progress_percent == 47
    assert result.days_remaining == 16


def test_past_due_date_is_breached(evaluator, resumed_config):
    result = evaluator.evaluate_config(resumed_config, 80, utc(2024, 2, 10))

    assert result.status == SLAStatus.BREACHED
    assert result.days_remaining == -5
    assert result.expected_progress_percent == 100


def test_breach_overrides_small_gap(evaluator):
    config = ServiceStateMachine.configure(10, utc(2024, 1, 1))
    result = evaluator.evaluate_config(config, 99, utc(2024, 1, 11, 0, 1))
    assert result.status == SLAStatus.BREACHED


def test_finished_work_is_never_breached(evaluator):
    config = ServiceStateMachine.configure(10, utc(2024, 1, 1))
    result = evaluator.evaluate_config(config, 100, utc(2024, 3, 1))

    assert result.status == SLAStatus.ON_TRACK
    assert result.expected_progress_percent == 100
    assert result.days_remaining < 0


def test_exactly_at_due_date_is_not_breached(evaluator):
    config = ServiceStateMachine.configure(10, utc(2024, 1, 1))
    result = evaluator.evaluate_config(config, 50, utc(2024, 1, 11))
    assert result.status != SLAStatus.BREACHED
    assert result.days_remaining == 0


@pytest.mark.parametrize("progress, expected_status", [
    (50, SLAStatus.ON_TRACK),
    (40, SLAStatus.ON_TRACK),
    (39, SLAStatus.AT_RISK),
    (20, SLAStatus.AT_RISK),
])
def test_gap_threshold_is_strict(evaluator, progress, expected_status):
    # 5 of 10 days elapsed: 50% expected
    config = ServiceStateMachine.configure(10, utc(2024, 1, 1))
    result = evaluator.evaluate_config(config, progress, utc(2024, 1, 6))

    assert result.expected_progress_percent == 50
    assert result.status == expected_status


def test_custom_policy_thresholds():
    evaluator = SLAEvaluator(SLAPolicy(moderate_gap_percent=20, severe_gap_percent=30))
    config = ServiceStateMachine.configure(10, utc(2024, 1, 1))

    assert evaluator.evaluate_config(config, 35, utc(2024, 1, 6)).status == SLAStatus.ON_TRACK
    assert evaluator.evaluate_config(config, 29, utc(2024, 1, 6)).status == SLAStatus.AT_RISK


def test_expected_progress_rounds_half_up(evaluator):
    # 1 of 8 days is 12.5%
    config = ServiceStateMachine.configure(8, utc(2024, 1, 1))
    result = evaluator.evaluate_config(config, 100, utc(2024, 1, 2))
    assert result.expected_progress_percent == 13


def test_progress_is_clamped(evaluator):
    config = ServiceStateMachine.configure(10, utc(2024, 1, 1))

    assert evaluator.evaluate_config(config, 150, utc(2024, 3, 1)).status == SLAStatus.ON_TRACK
    below_zero = evaluator.evaluate_config(config, -5, utc(2024, 1, 3))
    assert below_zero.status == SLAStatus.AT_RISK  # 20% expected vs 0


def test_open_pause_stops_expected_progress(evaluator):
    config = ServiceStateMachine.configure(10, utc(2024, 1, 1))
    paused = ServiceStateMachine.pause(config, utc(2024, 1, 3))

    result = evaluator.evaluate_config(paused, 20, utc(2024, 1, 9))

    assert result.active_days_elapsed == 2
    assert result.expected_progress_percent == 20
    assert result.status == SLAStatus.ON_TRACK


def test_start_in_future_expects_nothing(evaluator):
    config = ServiceStateMachine.configure(10, utc(2024, 6, 1))
    result = evaluator.evaluate_config(config, 0, utc(2024, 5, 1))

    assert result.active_days_elapsed == 0
    assert result.expected_progress_percent == 0
    assert result.status == SLAStatus.ON_TRACK


def test_unconfigured_project_gets_neutral_result(evaluator):
    assert evaluator.evaluate_config(None, 0, utc(2024, 1, 1)) == EvaluationResult.neutral()
    assert evaluator.evaluate(0, None, None, None, None, 0, utc(2024, 1, 1)) == EvaluationResult.neutral()


def test_naive_timestamps_are_treated_as_utc(evaluator):
    config = ServiceStateMachine.configure(30, datetime(2024, 1, 1))
    result = evaluator.evaluate_config(config, 10, datetime(2024, 1, 15))
    assert result.active_days_elapsed == 14


class TestShouldAlert:
    @pytest.mark.parametrize("current, previous, expected", [
        (SLAStatus.BREACHED, None, AlertType.BREACH),
        (SLAStatus.BREACHED, SLAStatus.AT_RISK, AlertType.BREACH),
        (SLAStatus.BREACHED, SLAStatus.BREACHED, None),
        (SLAStatus.AT_RISK, SLAStatus.ON_TRACK, AlertType.WARNING),
        (SLAStatus.AT_RISK, None, AlertType.WARNING),
        (SLAStatus.AT_RISK, SLAStatus.AT_RISK, None),
        (SLAStatus.AT_RISK, SLAStatus.BREACHED, None),
        (SLAStatus.ON_TRACK, SLAStatus.AT_RISK, None),
    ])
    def test_alert_on_worsening(self, current, previous, expected):
        assert SLAEvaluator.should_alert(current, previous) == expected


class TestSLAPolicy:
    def test_defaults(self):
        policy = SLAPolicy()
        assert policy.moderate_gap_percent == 10
        assert policy.severe_gap_percent == 25

    def test_rejects_inverted_thresholds(self):
        with pytest.raises(ValidationError):
            SLAPolicy(moderate_gap_percent=30, severe_gap_percent=20)

    def test_rejects_out_of_range(self):
        with pytest.raises(ValidationError):
            SLAPolicy(moderate_gap_percent=-1)
