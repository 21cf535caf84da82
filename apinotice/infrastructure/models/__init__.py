"""ORM models used by the application infrastructure."""

from .api import ApiModel, ApiVersionModel
from .notification import NotificationModel

__all__ = [
    "ApiModel",
    "ApiVersionModel",
    "NotificationModel",
]
