"""Routes for scheduling and inspecting lifecycle notices."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from apinotice.application.use_cases.errors import NOT_FOUND_MESSAGES
from apinotice.application.use_cases.notifications import (
    get_notification as get_notification_uc,
    list_notifications as list_notifications_uc,
    schedule_notification as schedule_notification_uc,
    update_notification_status as update_notification_status_uc,
)
from apinotice.domain.entities import Notification
from apinotice.domain.lifecycle import InvalidTransitionError
from apinotice.infrastructure.database import get_db
from apinotice.interfaces.api.schemas import (
    NotificationCreate,
    NotificationRead,
    NotificationStatusUpdate,
)
from apinotice.utils import parse_schedule_instant

router = APIRouter(tags=["notifications"])


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id,
        api_id=notification.api_id,
        version_id=notification.version_id,
        type=notification.kind,
        scheduled_at=notification.scheduled_at,
        status=notification.status,
        attempts=notification.attempts,
        retry_after=notification.retry_after,
        last_error=notification.last_error,
        created_at=notification.created_at,
    )


def _http_error(exc: ValueError) -> HTTPException:
    detail = str(exc)
    status_code = status.HTTP_400_BAD_REQUEST
    if detail in NOT_FOUND_MESSAGES:
        status_code = status.HTTP_404_NOT_FOUND
    return HTTPException(status_code=status_code, detail=detail)


@router.get("/apis/{api_id}/notifications", response_model=list[NotificationRead])
def list_notifications(api_id: str, db: Session = Depends(get_db)) -> list[NotificationRead]:
    try:
        notifications = list_notifications_uc(db, api_id)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return [_notification_to_schema(notification) for notification in notifications]


@router.post(
    "/apis/{api_id}/notifications",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
)
def schedule_notification(
    api_id: str,
    payload: NotificationCreate,
    db: Session = Depends(get_db),
) -> NotificationRead:
    """Schedule a notice; delivery happens on a later dispatch cycle."""

    try:
        notification = schedule_notification_uc(
            db,
            api_id=api_id,
            version_id=payload.version_id,
            kind=payload.type,
            scheduled_at=parse_schedule_instant(payload.scheduled_at),
        )
    except ValueError as exc:
        raise _http_error(exc) from exc
    return _notification_to_schema(notification)


@router.get("/notifications/{notification_id}", response_model=NotificationRead)
def read_notification(notification_id: str, db: Session = Depends(get_db)) -> NotificationRead:
    try:
        notification = get_notification_uc(db, notification_id)
    except ValueError as exc:
        raise _http_error(exc) from exc
    return _notification_to_schema(notification)


@router.put("/notifications/{notification_id}", response_model=NotificationRead)
def update_notification(
    notification_id: str,
    payload: NotificationStatusUpdate,
    db: Session = Depends(get_db),
) -> NotificationRead:
    """Cancel a pending notice. No other status can be requested."""

    try:
        notification = update_notification_status_uc(
            db, notification_id, status=payload.status
        )
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise _http_error(exc) from exc
    return _notification_to_schema(notification)
