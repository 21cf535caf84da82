"""Domain entities representing catalogued APIs and their versions."""

from dataclasses import dataclass
from datetime import date, datetime

VERSION_STATUS_ACTIVE = "active"
VERSION_STATUS_DEPRECATED = "deprecated"
VERSION_STATUS_SUNSET = "sunset"
VERSION_STATUSES = (
    VERSION_STATUS_ACTIVE,
    VERSION_STATUS_DEPRECATED,
    VERSION_STATUS_SUNSET,
)


@dataclass
class Api:
    """An API owned by an organization."""

    id: str | None
    org_id: str
    name: str
    description: str | None = None
    base_url: str | None = None
    docs_url: str | None = None
    contact_email: str | None = None
    owner_team: str | None = None
    created_at: datetime | None = None
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass
class ApiVersion:
    """A published version of an API."""

    id: str | None
    api_id: str
    version: str
    status: str = VERSION_STATUS_ACTIVE
    sunset_date: date | None = None
    created_at: datetime | None = None
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


__all__ = [
    "Api",
    "ApiVersion",
    "VERSION_STATUS_ACTIVE",
    "VERSION_STATUS_DEPRECATED",
    "VERSION_STATUS_SUNSET",
    "VERSION_STATUSES",
]
