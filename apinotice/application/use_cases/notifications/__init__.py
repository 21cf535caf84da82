"""Use cases for scheduling, cancelling and dispatching lifecycle notices."""

from .cancel_notification import cancel_notification, update_notification_status
from .compose import build_html, build_subject
from .dispatch import (
    DispatchOptions,
    DispatchReport,
    dispatch_due_notifications,
    resolve_recipient,
)
from .list_notifications import get_notification, list_notifications
from .schedule_notification import schedule_notification

__all__ = [
    "DispatchOptions",
    "DispatchReport",
    "build_html",
    "build_subject",
    "cancel_notification",
    "dispatch_due_notifications",
    "get_notification",
    "list_notifications",
    "resolve_recipient",
    "schedule_notification",
    "update_notification_status",
]
