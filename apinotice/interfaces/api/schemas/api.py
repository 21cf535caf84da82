"""Schemas for API catalogue endpoints."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class ApiCreate(BaseModel):
    """Payload required to register an API."""

    org_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str | None = None
    base_url: str | None = None
    docs_url: str | None = None
    contact_email: str | None = None
    owner_team: str | None = None


class ApiUpdate(BaseModel):
    """Partial update; omitted fields keep their value, blank ones are cleared."""

    name: str | None = None
    description: str | None = None
    base_url: str | None = None
    docs_url: str | None = None
    contact_email: str | None = None
    owner_team: str | None = None

    model_config = ConfigDict(extra="forbid")


class ApiRead(BaseModel):
    id: str
    org_id: str
    name: str
    description: str | None
    base_url: str | None
    docs_url: str | None
    contact_email: str | None
    owner_team: str | None
    created_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class VersionCreate(BaseModel):
    version: str = Field(..., min_length=1)
    status: str = "active"
    sunset_date: date | None = None

    model_config = ConfigDict(extra="forbid")


class VersionUpdate(BaseModel):
    status: str = Field(..., min_length=1)
    sunset_date: date | None = None

    model_config = ConfigDict(extra="forbid")


class VersionRead(BaseModel):
    id: str
    api_id: str
    version: str
    status: str
    sunset_date: date | None
    created_at: datetime | None

    model_config = ConfigDict(from_attributes=True)
