"""Use case for the explicit, user-initiated status change of a notice."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from apinotice.application.use_cases.errors import (
    INVALID_NOTIFICATION_STATUS,
    NOTIFICATION_NOT_FOUND,
)
from apinotice.domain.entities import Notification, NotificationStatus
from apinotice.domain.lifecycle import InvalidTransitionError, user_canceled
from apinotice.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)


def cancel_notification(
    session: Session, notification_id: str, *, reason: str | None = None
) -> Notification:
    """Cancel a pending notice.

    The write only applies while the notice is still pending, so a delivery
    recorded between the read and the write is never overwritten.
    """

    repository = NotificationRepository(session)
    notification = repository.get(notification_id)
    if notification is None:
        raise ValueError(NOTIFICATION_NOT_FOUND)

    transition = user_canceled(notification.status, notification.attempts, reason)
    updated = repository.set_status(
        notification_id,
        transition.status,
        reason=transition.last_error,
        expected=NotificationStatus.PENDING,
    )
    if updated is None:
        current = repository.get(notification_id)
        if current is None:
            raise ValueError(NOTIFICATION_NOT_FOUND)
        raise InvalidTransitionError(current.status, transition.status)
    logger.info("Notification %s canceled by user", notification_id)
    return updated


def update_notification_status(
    session: Session, notification_id: str, *, status: str
) -> Notification:
    """Apply a status requested through the API.

    Only ``pending -> canceled`` is a user transition; asking for the status a
    notice already has is accepted as a no-op.
    """

    try:
        target = NotificationStatus((status or "").strip().lower())
    except ValueError as exc:
        raise ValueError(INVALID_NOTIFICATION_STATUS) from exc

    notification = NotificationRepository(session).get(notification_id)
    if notification is None:
        raise ValueError(NOTIFICATION_NOT_FOUND)

    if target is notification.status:
        return notification
    if target is NotificationStatus.CANCELED:
        return cancel_notification(session, notification_id)
    # pending -> sent is reserved for the dispatcher.
    raise InvalidTransitionError(notification.status, target)
