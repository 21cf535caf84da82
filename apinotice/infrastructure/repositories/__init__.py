"""Repository implementations for infrastructure layer."""

from .api_repository import ApiRepository
from .api_version_repository import ApiVersionRepository
from .notification_repository import DEFAULT_DUE_LIMIT, NotificationRepository

__all__ = [
    "ApiRepository",
    "ApiVersionRepository",
    "DEFAULT_DUE_LIMIT",
    "NotificationRepository",
]
