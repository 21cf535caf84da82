"""Domain entities describing scheduled lifecycle notices."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class NotificationKind(str, Enum):
    """Kind of lifecycle notice announced to API consumers."""

    DEPRECATE = "deprecate"
    SUNSET = "sunset"


class NotificationStatus(str, Enum):
    """Delivery status of a scheduled notice."""

    PENDING = "pending"
    SENT = "sent"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self is not NotificationStatus.PENDING


@dataclass
class Notification:
    """A notice scheduled for one version of an API."""

    id: str | None
    api_id: str
    version_id: str
    kind: NotificationKind
    scheduled_at: datetime
    status: NotificationStatus = NotificationStatus.PENDING
    attempts: int = 0
    retry_after: datetime | None = None
    last_error: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class DueNotification:
    """A notice ready for delivery, with the context needed to compose it."""

    id: str
    api_id: str
    org_id: str
    api_name: str
    version_id: str
    version: str
    kind: NotificationKind
    scheduled_at: datetime
    attempts: int
    contact_email: str | None = None
    docs_url: str | None = None
    base_url: str | None = None


__all__ = [
    "DueNotification",
    "Notification",
    "NotificationKind",
    "NotificationStatus",
]
