"""Tests for a single dispatch cycle."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import timedelta

import pytest

from apinotice.application.use_cases.notifications import (
    DispatchOptions,
    dispatch_due_notifications,
    resolve_recipient,
)
from apinotice.domain.entities import DueNotification, NotificationKind, NotificationStatus
from apinotice.domain.lifecycle import EXHAUSTED_REASON_PREFIX
from apinotice.domain.ports import DeliveryResult
from apinotice.domain.retry_policy import RetryPolicy
from apinotice.infrastructure.repositories import NotificationRepository

from support import BASE_TIME, FailingMailer, RecordingMailer


def _options(max_attempts: int = 3, fallback: str | None = None) -> DispatchOptions:
    return DispatchOptions(
        policy=RetryPolicy.from_seconds(base=60, maximum=3600, max_attempts=max_attempts),
        batch_limit=50,
        fallback_recipient=fallback,
    )


class FlakyWriteStore:
    """Wrap a repository and fail ``mark_sent`` for one notice."""

    def __init__(self, repository: NotificationRepository, broken_id: str) -> None:
        self._repository = repository
        self._broken_id = broken_id

    def __getattr__(self, name):
        return getattr(self._repository, name)

    def mark_sent(self, notification_id: str) -> bool:
        if notification_id == self._broken_id:
            raise RuntimeError("database is locked")
        return self._repository.mark_sent(notification_id)


class UnreadableStore:
    def list_due(self, now, limit):
        raise RuntimeError("connection refused")


@pytest.mark.anyio
async def test_retries_with_backoff_then_auto_cancels(session, clock, make_api, make_version, make_notification):
    api = make_api()
    version = make_version(api)
    notice = make_notification(api, version, BASE_TIME - timedelta(hours=1))
    repository = NotificationRepository(session)
    mailer = FailingMailer("smtp timeout")

    first = await dispatch_due_notifications(repository, mailer, _options(), clock=clock)
    stored = repository.get(notice.id)
    assert first.retried == 1
    assert stored.status is NotificationStatus.PENDING
    assert stored.attempts == 1
    assert stored.retry_after == BASE_TIME + timedelta(seconds=60)
    assert stored.last_error == "send failed: smtp timeout"

    clock.advance(seconds=30)
    idle = await dispatch_due_notifications(repository, mailer, _options(), clock=clock)
    assert idle.due == 0
    assert mailer.calls == 1

    second_failure_at = clock.advance(seconds=30)
    await dispatch_due_notifications(repository, mailer, _options(), clock=clock)
    stored = repository.get(notice.id)
    assert stored.attempts == 2
    assert stored.retry_after == second_failure_at + timedelta(seconds=120)

    clock.advance(seconds=120)
    third = await dispatch_due_notifications(repository, mailer, _options(), clock=clock)
    stored = repository.get(notice.id)
    assert third.canceled == 1
    assert stored.status is NotificationStatus.CANCELED
    assert stored.attempts == 3
    assert stored.retry_after is None
    assert stored.last_error.startswith(EXHAUSTED_REASON_PREFIX)

    clock.advance(hours=2)
    after = await dispatch_due_notifications(repository, mailer, _options(), clock=clock)
    assert after.due == 0
    assert mailer.calls == 3


@pytest.mark.anyio
async def test_successful_delivery_marks_sent(session, clock, make_api, make_version, make_notification):
    api = make_api(contact_email="owner@example.com")
    version = make_version(api)
    notice = make_notification(api, version, BASE_TIME)
    repository = NotificationRepository(session)
    mailer = RecordingMailer()

    report = await dispatch_due_notifications(repository, mailer, _options(), clock=clock)

    stored = repository.get(notice.id)
    assert report.sent == 1
    assert stored.status is NotificationStatus.SENT
    assert stored.attempts == 0
    assert stored.retry_after is None
    recipient, subject, body = mailer.sent[0]
    assert recipient == "owner@example.com"
    assert subject == "[apinotice] Deprecation notice – Payments v1"
    assert "Payments" in body


@pytest.mark.anyio
async def test_notice_without_recipient_is_skipped_each_cycle(session, clock, make_api, make_version, make_notification, caplog):
    api = make_api(contact_email=None)
    version = make_version(api)
    notice = make_notification(api, version, BASE_TIME)
    repository = NotificationRepository(session)
    mailer = RecordingMailer()

    with caplog.at_level(logging.WARNING):
        report = await dispatch_due_notifications(repository, mailer, _options(), clock=clock)

    stored = repository.get(notice.id)
    assert report.skipped == 1
    assert mailer.sent == []
    assert stored.status is NotificationStatus.PENDING
    assert stored.attempts == 0
    assert any(notice.id in record.getMessage() for record in caplog.records)
    assert [due.id for due in repository.list_due(clock(), 50)] == [notice.id]


@pytest.mark.anyio
async def test_fallback_recipient_is_used(session, clock, make_api, make_version, make_notification):
    api = make_api(contact_email=None)
    version = make_version(api)
    make_notification(api, version, BASE_TIME)
    mailer = RecordingMailer()

    await dispatch_due_notifications(
        NotificationRepository(session),
        mailer,
        _options(fallback="ops@example.com"),
        clock=clock,
    )

    assert mailer.sent[0][0] == "ops@example.com"


@pytest.mark.anyio
async def test_transport_exception_counts_as_failed_attempt(session, clock, make_api, make_version, make_notification):
    api = make_api()
    version = make_version(api)
    notice = make_notification(api, version, BASE_TIME)
    repository = NotificationRepository(session)

    report = await dispatch_due_notifications(
        repository, RecordingMailer(RuntimeError("boom")), _options(), clock=clock
    )

    stored = repository.get(notice.id)
    assert report.retried == 1
    assert stored.attempts == 1
    assert stored.last_error == "send failed: boom"


@pytest.mark.anyio
async def test_single_attempt_budget_cancels_on_first_failure(session, clock, make_api, make_version, make_notification):
    api = make_api()
    version = make_version(api)
    notice = make_notification(api, version, BASE_TIME)
    repository = NotificationRepository(session)

    await dispatch_due_notifications(
        repository, FailingMailer(), _options(max_attempts=1), clock=clock
    )

    stored = repository.get(notice.id)
    assert stored.status is NotificationStatus.CANCELED
    assert stored.attempts == 1


@pytest.mark.anyio
async def test_write_failure_does_not_stop_the_cycle(session, clock, make_api, make_version, make_notification, caplog):
    api = make_api()
    version = make_version(api)
    broken = make_notification(api, version, BASE_TIME - timedelta(minutes=2))
    healthy = make_notification(api, version, BASE_TIME - timedelta(minutes=1))
    repository = NotificationRepository(session)
    mailer = RecordingMailer()

    with caplog.at_level(logging.ERROR):
        report = await dispatch_due_notifications(
            FlakyWriteStore(repository, broken.id), mailer, _options(), clock=clock
        )

    assert report.write_failures == 1
    assert report.sent == 1
    assert len(mailer.sent) == 2
    assert repository.get(broken.id).status is NotificationStatus.PENDING
    assert repository.get(healthy.id).status is NotificationStatus.SENT
    assert any(broken.id in record.getMessage() for record in caplog.records)


@pytest.mark.anyio
async def test_read_failure_aborts_the_cycle(clock):
    mailer = RecordingMailer()

    with pytest.raises(RuntimeError, match="connection refused"):
        await dispatch_due_notifications(UnreadableStore(), mailer, _options(), clock=clock)

    assert mailer.sent == []


@pytest.mark.anyio
async def test_outcome_for_notice_canceled_mid_cycle_is_dropped(session, clock, make_api, make_version, make_notification):
    api = make_api()
    version = make_version(api)
    notice = make_notification(api, version, BASE_TIME)
    repository = NotificationRepository(session)

    class CancelingMailer:
        def send(self, recipient, subject, html_body):
            repository.set_status(notice.id, NotificationStatus.CANCELED, reason="withdrawn")
            return DeliveryResult.ok()

    report = await dispatch_due_notifications(repository, CancelingMailer(), _options(), clock=clock)

    stored = repository.get(notice.id)
    assert report.sent == 0
    assert stored.status is NotificationStatus.CANCELED
    assert stored.last_error == "withdrawn"


def test_resolve_recipient_prefers_contact_email():
    notice = DueNotification(
        id="n",
        api_id="a",
        org_id="o",
        api_name="Payments",
        version_id="v",
        version="v1",
        kind=NotificationKind.SUNSET,
        scheduled_at=BASE_TIME,
        attempts=0,
        contact_email=" owner@example.com ",
    )

    assert resolve_recipient(notice, "ops@example.com") == "owner@example.com"
    assert resolve_recipient(replace(notice, contact_email=None), "ops@example.com") == "ops@example.com"
    assert resolve_recipient(replace(notice, contact_email=""), " ") is None
