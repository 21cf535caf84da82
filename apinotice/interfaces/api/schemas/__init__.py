from .api import ApiCreate, ApiRead, ApiUpdate, VersionCreate, VersionRead, VersionUpdate
from .notification import (
    NotificationCreate,
    NotificationRead,
    NotificationStatusUpdate,
)

__all__ = [
    "ApiCreate",
    "ApiRead",
    "ApiUpdate",
    "NotificationCreate",
    "NotificationRead",
    "NotificationStatusUpdate",
    "VersionCreate",
    "VersionRead",
    "VersionUpdate",
]
