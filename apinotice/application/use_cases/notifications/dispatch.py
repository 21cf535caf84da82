"""One dispatch cycle: deliver every due notice and persist the outcome.

Blocking collaborators run in worker threads one call at a time, so notices
are handled strictly in selector order. The read of the due batch and the
transport call are abandoned if the enclosing cycle is cancelled; an abandoned
send is never persisted and the notice stays pending for the next cycle.
Store writes run to completion; the engine bounds them with a driver timeout
(see ``apinotice.infrastructure.database``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from functools import partial

from anyio import to_thread

from apinotice.application.use_cases.notifications.compose import (
    DEFAULT_SUBJECT_PREFIX,
    build_html,
    build_subject,
)
from apinotice.config import Settings
from apinotice.domain.entities import DueNotification, NotificationStatus
from apinotice.domain.lifecycle import (
    Transition,
    TransitionKind,
    delivery_failed,
    delivery_succeeded,
)
from apinotice.domain.ports import DeliveryResult, Mailer, NotificationStore
from apinotice.domain.retry_policy import RetryPolicy
from apinotice.utils import utc_now

logger = logging.getLogger(__name__)

DEFAULT_BATCH_LIMIT = 50


@dataclass(frozen=True)
class DispatchOptions:
    """Tunables of a dispatch cycle."""

    policy: RetryPolicy
    batch_limit: int = DEFAULT_BATCH_LIMIT
    fallback_recipient: str | None = None
    subject_prefix: str = DEFAULT_SUBJECT_PREFIX

    @classmethod
    def from_settings(cls, settings: Settings) -> "DispatchOptions":
        return cls(
            policy=RetryPolicy.from_seconds(
                base=settings.notify_backoff_base_seconds,
                maximum=settings.notify_backoff_max_seconds,
                max_attempts=settings.notify_max_attempts,
            ),
            batch_limit=settings.notify_batch_limit,
            fallback_recipient=settings.notify_fallback_recipient,
            subject_prefix=settings.notify_subject_prefix,
        )


@dataclass
class DispatchReport:
    """Counters describing what a cycle did."""

    due: int = 0
    sent: int = 0
    retried: int = 0
    canceled: int = 0
    skipped: int = 0
    write_failures: int = 0


def resolve_recipient(
    notice: DueNotification, fallback_recipient: str | None
) -> str | None:
    """Return the API contact address, else the fallback, else ``None``."""

    for candidate in (notice.contact_email, fallback_recipient):
        if candidate and candidate.strip():
            return candidate.strip()
    return None


async def dispatch_due_notifications(
    store: NotificationStore,
    mailer: Mailer,
    options: DispatchOptions,
    *,
    clock: Callable[[], datetime] = utc_now,
) -> DispatchReport:
    """Run one cycle over the current batch of due notices.

    A failure while fetching the batch propagates so the whole cycle is
    skipped; failures while persisting one notice are logged and the cycle
    moves on to the next notice.
    """

    now = clock()
    due = await to_thread.run_sync(
        store.list_due, now, options.batch_limit, abandon_on_cancel=True
    )
    report = DispatchReport(due=len(due))
    if not due:
        logger.info("No due notifications (now=%s)", now.isoformat())
        return report

    logger.info("Found %d due notification(s)", len(due))
    for notice in due:
        await _dispatch_notice(store, mailer, notice, options, clock, report)

    logger.info(
        "Dispatch cycle finished: due=%d sent=%d retried=%d canceled=%d skipped=%d "
        "write_failures=%d",
        report.due,
        report.sent,
        report.retried,
        report.canceled,
        report.skipped,
        report.write_failures,
    )
    return report


async def _dispatch_notice(
    store: NotificationStore,
    mailer: Mailer,
    notice: DueNotification,
    options: DispatchOptions,
    clock: Callable[[], datetime],
    report: DispatchReport,
) -> None:
    recipient = resolve_recipient(notice, options.fallback_recipient)
    if recipient is None:
        # No state change: the notice stays due and is reconsidered next cycle.
        logger.warning(
            "Skipping notification %s for API %s: no contact email and no fallback recipient",
            notice.id,
            notice.api_id,
        )
        report.skipped += 1
        return

    subject = build_subject(notice, prefix=options.subject_prefix)
    body = build_html(notice)
    result = await _deliver(mailer, notice, recipient, subject, body)

    if result.success:
        transition = delivery_succeeded(NotificationStatus.PENDING, notice.attempts)
    else:
        transition = delivery_failed(
            NotificationStatus.PENDING,
            notice.attempts,
            result.error or "unknown error",
            policy=options.policy,
            failed_at=clock(),
        )
    await _persist(store, notice, recipient, transition, report)


async def _deliver(
    mailer: Mailer,
    notice: DueNotification,
    recipient: str,
    subject: str,
    body: str,
) -> DeliveryResult:
    try:
        return await to_thread.run_sync(
            mailer.send, recipient, subject, body, abandon_on_cancel=True
        )
    except Exception as exc:
        logger.exception(
            "Mail transport raised while sending notification %s (attempts=%d)",
            notice.id,
            notice.attempts,
        )
        return DeliveryResult.failed(str(exc) or exc.__class__.__name__)


async def _persist(
    store: NotificationStore,
    notice: DueNotification,
    recipient: str,
    transition: Transition,
    report: DispatchReport,
) -> None:
    if transition.kind is TransitionKind.SENT:
        write = partial(store.mark_sent, notice.id)
    elif transition.kind is TransitionKind.RETRY:
        write = partial(
            store.schedule_retry,
            notice.id,
            transition.retry_after,
            transition.attempts,
            transition.last_error,
        )
    else:
        write = partial(
            store.auto_cancel,
            notice.id,
            transition.last_error,
            attempts=transition.attempts,
        )

    try:
        updated = await to_thread.run_sync(write)
    except Exception:
        logger.exception(
            "Failed to record %s outcome for notification %s (attempts=%d)",
            transition.kind.value,
            notice.id,
            transition.attempts,
        )
        report.write_failures += 1
        return

    if not updated:
        logger.warning(
            "Notification %s is no longer pending; %s outcome not recorded",
            notice.id,
            transition.kind.value,
        )
        return

    if transition.kind is TransitionKind.SENT:
        report.sent += 1
        logger.info("Sent notification %s to %s", notice.id, recipient)
    elif transition.kind is TransitionKind.RETRY:
        report.retried += 1
        logger.info(
            "Will retry notification %s at %s (attempt=%d): %s",
            notice.id,
            transition.retry_after.isoformat() if transition.retry_after else None,
            transition.attempts,
            transition.last_error,
        )
    else:
        report.canceled += 1
        logger.warning(
            "Auto-canceled notification %s after %d attempts: %s",
            notice.id,
            transition.attempts,
            transition.last_error,
        )


__all__ = [
    "DEFAULT_BATCH_LIMIT",
    "DispatchOptions",
    "DispatchReport",
    "dispatch_due_notifications",
    "resolve_recipient",
]
