"""Status transitions of a scheduled notice.

A notice starts ``pending`` and ends either ``sent`` or ``canceled``:

========  ==============================  =========  ===========================================
From      Trigger                         To         Side effect
========  ==============================  =========  ===========================================
pending   delivery succeeds               sent       retry_after cleared, attempts unchanged
pending   delivery fails, budget left     pending    attempts + 1, retry_after from the policy
pending   delivery fails, budget spent    canceled   attempts + 1, last_error holds the reason
pending   explicit user cancellation      canceled   retry_after cleared, optional reason kept
========  ==============================  =========  ===========================================

Terminal statuses have no outgoing transition.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from apinotice.domain.entities import NotificationStatus
from apinotice.domain.retry_policy import RetryPolicy

MAX_ERROR_LENGTH = 500
EXHAUSTED_REASON_PREFIX = "auto-canceled after max attempts; last error: "

ALLOWED_TRANSITIONS: dict[NotificationStatus, frozenset[NotificationStatus]] = {
    NotificationStatus.PENDING: frozenset(
        {
            NotificationStatus.PENDING,
            NotificationStatus.SENT,
            NotificationStatus.CANCELED,
        }
    ),
    NotificationStatus.SENT: frozenset(),
    NotificationStatus.CANCELED: frozenset(),
}


class InvalidTransitionError(ValueError):
    """Raised when a transition is requested from a terminal status."""

    def __init__(self, source: NotificationStatus, target: NotificationStatus) -> None:
        self.source = source
        self.target = target
        super().__init__(
            f"Cannot move a notification from '{source.value}' to '{target.value}'"
        )


class TransitionKind(str, Enum):
    SENT = "sent"
    RETRY = "retry"
    EXHAUSTED = "exhausted"
    CANCELED = "canceled"


@dataclass(frozen=True)
class Transition:
    """The state a notice moves to, with the bookkeeping to persist."""

    kind: TransitionKind
    status: NotificationStatus
    attempts: int
    retry_after: datetime | None = None
    last_error: str | None = None


def can_transition(source: NotificationStatus, target: NotificationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(source, frozenset())


def _ensure_allowed(source: NotificationStatus, target: NotificationStatus) -> None:
    if not can_transition(source, target):
        raise InvalidTransitionError(source, target)


def truncate_error(message: str, limit: int = MAX_ERROR_LENGTH) -> str:
    return message if len(message) <= limit else message[:limit]


def delivery_succeeded(status: NotificationStatus, attempts: int) -> Transition:
    _ensure_allowed(status, NotificationStatus.SENT)
    return Transition(
        kind=TransitionKind.SENT,
        status=NotificationStatus.SENT,
        attempts=attempts,
    )


def delivery_failed(
    status: NotificationStatus,
    attempts: int,
    error: str,
    *,
    policy: RetryPolicy,
    failed_at: datetime,
) -> Transition:
    """Return the retry or exhaustion transition following a failed send."""

    next_attempts = attempts + 1
    message = truncate_error(f"send failed: {error}")
    decision = policy.evaluate(next_attempts, failed_at)
    if decision.exhausted:
        _ensure_allowed(status, NotificationStatus.CANCELED)
        return Transition(
            kind=TransitionKind.EXHAUSTED,
            status=NotificationStatus.CANCELED,
            attempts=next_attempts,
            last_error=truncate_error(EXHAUSTED_REASON_PREFIX + message),
        )

    _ensure_allowed(status, NotificationStatus.PENDING)
    return Transition(
        kind=TransitionKind.RETRY,
        status=NotificationStatus.PENDING,
        attempts=next_attempts,
        retry_after=decision.retry_at,
        last_error=message,
    )


def user_canceled(
    status: NotificationStatus, attempts: int, reason: str | None = None
) -> Transition:
    _ensure_allowed(status, NotificationStatus.CANCELED)
    return Transition(
        kind=TransitionKind.CANCELED,
        status=NotificationStatus.CANCELED,
        attempts=attempts,
        last_error=truncate_error(reason) if reason else None,
    )


__all__ = [
    "ALLOWED_TRANSITIONS",
    "EXHAUSTED_REASON_PREFIX",
    "InvalidTransitionError",
    "MAX_ERROR_LENGTH",
    "Transition",
    "TransitionKind",
    "can_transition",
    "delivery_failed",
    "delivery_succeeded",
    "truncate_error",
    "user_canceled",
]
