from datetime import timedelta

import pytest

from apinotice.domain.retry_policy import RetryPolicy

from support import BASE_TIME


def _policy(max_attempts: int = 6) -> RetryPolicy:
    return RetryPolicy.from_seconds(base=60, maximum=3600, max_attempts=max_attempts)


def test_delay_doubles_from_base_until_capped():
    policy = _policy()

    delays = [policy.delay_for(attempts).total_seconds() for attempts in range(1, 9)]

    assert delays == [60, 120, 240, 480, 960, 1920, 3600, 3600]


def test_large_attempt_counts_stay_at_the_cap():
    assert _policy().delay_for(10_000) == timedelta(seconds=3600)


def test_delay_requires_a_failure_to_have_happened():
    with pytest.raises(ValueError):
        _policy().delay_for(0)


def test_evaluate_schedules_retry_relative_to_failure_time():
    decision = _policy().evaluate(2, BASE_TIME)

    assert not decision.exhausted
    assert decision.attempts == 2
    assert decision.retry_at == BASE_TIME + timedelta(seconds=120)


def test_evaluate_reports_exhaustion_when_budget_is_spent():
    policy = _policy(max_attempts=3)

    assert not policy.evaluate(2, BASE_TIME).exhausted
    decision = policy.evaluate(3, BASE_TIME)
    assert decision.exhausted
    assert decision.retry_at is None


@pytest.mark.parametrize(
    "base, maximum, max_attempts",
    [(0, 60, 3), (120, 60, 3), (60, 3600, 0)],
)
def test_invalid_policies_are_rejected(base, maximum, max_attempts):
    with pytest.raises(ValueError):
        RetryPolicy.from_seconds(base=base, maximum=maximum, max_attempts=max_attempts)
