"""Use cases for reading scheduled notices."""

from collections.abc import Sequence

from sqlalchemy.orm import Session

from apinotice.application.use_cases.errors import API_NOT_FOUND, NOTIFICATION_NOT_FOUND
from apinotice.domain.entities import Notification
from apinotice.infrastructure.repositories import ApiRepository, NotificationRepository


def list_notifications(session: Session, api_id: str) -> Sequence[Notification]:
    """Return every notice scheduled for the API, earliest first."""

    if ApiRepository(session).get(api_id) is None:
        raise ValueError(API_NOT_FOUND)
    return NotificationRepository(session).list_for_api(api_id)


def get_notification(session: Session, notification_id: str) -> Notification:
    notification = NotificationRepository(session).get(notification_id)
    if notification is None:
        raise ValueError(NOTIFICATION_NOT_FOUND)
    return notification
