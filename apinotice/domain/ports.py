"""Contracts the dispatch engine consumes from its collaborators."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable

from apinotice.domain.entities import (
    DueNotification,
    Notification,
    NotificationKind,
    NotificationStatus,
)


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome reported by a mail transport for one message."""

    success: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "DeliveryResult":
        return cls(success=True)

    @classmethod
    def failed(cls, reason: str) -> "DeliveryResult":
        return cls(success=False, error=reason or "unknown error")


@runtime_checkable
class Mailer(Protocol):
    """Mail transport able to deliver one HTML message to one recipient."""

    def send(self, recipient: str, subject: str, html_body: str) -> DeliveryResult:
        ...


@runtime_checkable
class NotificationStore(Protocol):
    """Durable notice state read and written by the dispatcher.

    Automatic writes (``mark_sent``, ``schedule_retry``, ``auto_cancel``) only
    touch pending records and report whether a record was updated.
    ``set_status`` is the explicit, user-initiated path; it is unconditional
    unless ``expected`` names the status the record must still have.
    """

    def create(
        self,
        api_id: str,
        version_id: str,
        kind: NotificationKind,
        scheduled_at: datetime,
    ) -> Notification:
        ...

    def get(self, notification_id: str) -> Notification | None:
        ...

    def list_due(self, now: datetime, limit: int) -> Sequence[DueNotification]:
        ...

    def mark_sent(self, notification_id: str) -> bool:
        ...

    def schedule_retry(
        self,
        notification_id: str,
        next_attempt_at: datetime,
        attempts: int,
        last_error: str,
    ) -> bool:
        ...

    def auto_cancel(
        self, notification_id: str, reason: str, *, attempts: int | None = None
    ) -> bool:
        ...

    def set_status(
        self,
        notification_id: str,
        status: NotificationStatus,
        *,
        reason: str | None = None,
        expected: NotificationStatus | None = None,
    ) -> Notification | None:
        ...


__all__ = ["DeliveryResult", "Mailer", "NotificationStore"]
