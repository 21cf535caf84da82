"""Schemas for scheduled notice endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from apinotice.domain.entities import NotificationKind, NotificationStatus


class NotificationCreate(BaseModel):
    """Payload used to schedule a notice.

    ``scheduled_at`` accepts RFC 3339 or a bare ``YYYY-MM-DD`` date, which is
    read as midnight UTC.
    """

    version_id: str = Field(..., min_length=1)
    type: str
    scheduled_at: str

    model_config = ConfigDict(extra="forbid")


class NotificationStatusUpdate(BaseModel):
    status: str

    model_config = ConfigDict(extra="forbid")


class NotificationRead(BaseModel):
    id: str
    api_id: str
    version_id: str
    type: NotificationKind
    scheduled_at: datetime
    status: NotificationStatus
    attempts: int
    retry_after: datetime | None
    last_error: str | None
    created_at: datetime | None
