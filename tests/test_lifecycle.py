from datetime import timedelta

import pytest

from apinotice.domain.entities import NotificationStatus
from apinotice.domain.lifecycle import (
    EXHAUSTED_REASON_PREFIX,
    MAX_ERROR_LENGTH,
    InvalidTransitionError,
    TransitionKind,
    can_transition,
    delivery_failed,
    delivery_succeeded,
    user_canceled,
)
from apinotice.domain.retry_policy import RetryPolicy

from support import BASE_TIME

POLICY = RetryPolicy.from_seconds(base=60, maximum=3600, max_attempts=3)


def test_success_keeps_attempt_count():
    transition = delivery_succeeded(NotificationStatus.PENDING, 2)

    assert transition.kind is TransitionKind.SENT
    assert transition.status is NotificationStatus.SENT
    assert transition.attempts == 2
    assert transition.retry_after is None


def test_failure_with_budget_left_schedules_retry():
    transition = delivery_failed(
        NotificationStatus.PENDING, 0, "smtp timeout", policy=POLICY, failed_at=BASE_TIME
    )

    assert transition.kind is TransitionKind.RETRY
    assert transition.status is NotificationStatus.PENDING
    assert transition.attempts == 1
    assert transition.retry_after == BASE_TIME + timedelta(seconds=60)
    assert transition.last_error == "send failed: smtp timeout"


def test_failure_reaching_max_attempts_cancels():
    transition = delivery_failed(
        NotificationStatus.PENDING, 2, "smtp timeout", policy=POLICY, failed_at=BASE_TIME
    )

    assert transition.kind is TransitionKind.EXHAUSTED
    assert transition.status is NotificationStatus.CANCELED
    assert transition.attempts == 3
    assert transition.retry_after is None
    assert transition.last_error == EXHAUSTED_REASON_PREFIX + "send failed: smtp timeout"


def test_error_text_is_truncated():
    transition = delivery_failed(
        NotificationStatus.PENDING, 0, "x" * 2000, policy=POLICY, failed_at=BASE_TIME
    )

    assert len(transition.last_error) == MAX_ERROR_LENGTH


@pytest.mark.parametrize("terminal", [NotificationStatus.SENT, NotificationStatus.CANCELED])
def test_terminal_statuses_have_no_outgoing_transition(terminal):
    for target in NotificationStatus:
        assert not can_transition(terminal, target)

    with pytest.raises(InvalidTransitionError):
        delivery_succeeded(terminal, 0)
    with pytest.raises(InvalidTransitionError):
        delivery_failed(terminal, 0, "boom", policy=POLICY, failed_at=BASE_TIME)
    with pytest.raises(InvalidTransitionError):
        user_canceled(terminal, 0)


def test_user_cancel_keeps_optional_reason():
    assert user_canceled(NotificationStatus.PENDING, 1).last_error is None
    transition = user_canceled(NotificationStatus.PENDING, 1, "version kept alive")
    assert transition.status is NotificationStatus.CANCELED
    assert transition.last_error == "version kept alive"
    assert transition.attempts == 1
