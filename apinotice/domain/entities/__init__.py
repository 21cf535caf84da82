"""Domain entities exposed by the application."""

from .api import (
    VERSION_STATUS_ACTIVE,
    VERSION_STATUS_DEPRECATED,
    VERSION_STATUS_SUNSET,
    VERSION_STATUSES,
    Api,
    ApiVersion,
)
from .notification import (
    DueNotification,
    Notification,
    NotificationKind,
    NotificationStatus,
)

__all__ = [
    "Api",
    "ApiVersion",
    "VERSION_STATUS_ACTIVE",
    "VERSION_STATUS_DEPRECATED",
    "VERSION_STATUS_SUNSET",
    "VERSION_STATUSES",
    "DueNotification",
    "Notification",
    "NotificationKind",
    "NotificationStatus",
]
