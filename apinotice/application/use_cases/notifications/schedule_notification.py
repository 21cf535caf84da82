"""Use case for scheduling a lifecycle notice."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from apinotice.application.use_cases.errors import (
    API_NOT_FOUND,
    INVALID_NOTIFICATION_KIND,
    VERSION_NOT_FOUND,
)
from apinotice.domain.entities import Notification, NotificationKind
from apinotice.infrastructure.repositories import (
    ApiRepository,
    ApiVersionRepository,
    NotificationRepository,
)


def schedule_notification(
    session: Session,
    *,
    api_id: str,
    version_id: str,
    kind: str,
    scheduled_at: datetime,
) -> Notification:
    """Create a pending notice; delivery is left to the dispatcher."""

    try:
        notification_kind = NotificationKind((kind or "").strip().lower())
    except ValueError as exc:
        raise ValueError(INVALID_NOTIFICATION_KIND) from exc

    if ApiRepository(session).get(api_id) is None:
        raise ValueError(API_NOT_FOUND)

    version = ApiVersionRepository(session).get(version_id.strip())
    if version is None or version.api_id != api_id:
        raise ValueError(VERSION_NOT_FOUND)

    return NotificationRepository(session).create(
        api_id, version.id, notification_kind, scheduled_at
    )
