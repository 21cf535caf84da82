"""Use cases for cataloguing APIs and their versions."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from sqlalchemy.orm import Session

from apinotice.application.use_cases.errors import (
    API_NOT_FOUND,
    INVALID_VERSION_STATUS,
    VERSION_ALREADY_EXISTS,
    VERSION_NOT_FOUND,
)
from apinotice.domain.entities import VERSION_STATUSES, Api, ApiVersion
from apinotice.infrastructure.repositories import ApiRepository, ApiVersionRepository


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


UPDATABLE_API_FIELDS = frozenset(
    {"name", "description", "base_url", "docs_url", "contact_email", "owner_team"}
)


def _normalize_version_status(status: str | None) -> str:
    normalized = (status or "").strip().lower()
    if normalized not in VERSION_STATUSES:
        raise ValueError(INVALID_VERSION_STATUS)
    return normalized


def create_api(
    session: Session,
    *,
    org_id: str,
    name: str,
    description: str | None = None,
    base_url: str | None = None,
    docs_url: str | None = None,
    contact_email: str | None = None,
    owner_team: str | None = None,
) -> Api:
    name = name.strip()
    if not name:
        raise ValueError("name required")
    return ApiRepository(session).create(
        Api(
            id=None,
            org_id=org_id.strip(),
            name=name,
            description=_clean(description),
            base_url=_clean(base_url),
            docs_url=_clean(docs_url),
            contact_email=_clean(contact_email),
            owner_team=_clean(owner_team),
        )
    )


def list_apis(session: Session, org_id: str) -> Sequence[Api]:
    """Return the live APIs of an organisation, newest first."""

    return ApiRepository(session).list_for_org(org_id.strip())


def get_api(session: Session, api_id: str) -> Api:
    api = ApiRepository(session).get(api_id)
    if api is None:
        raise ValueError(API_NOT_FOUND)
    return api


def update_api(session: Session, api_id: str, **fields: str | None) -> Api:
    """Overwrite only the fields that were provided.

    A provided blank value clears an optional field; ``name`` cannot be
    cleared.
    """

    unknown = set(fields) - UPDATABLE_API_FIELDS
    if unknown:
        raise ValueError(f"unknown field(s): {', '.join(sorted(unknown))}")

    changes: dict[str, str | None] = {}
    for field, value in fields.items():
        if field == "name":
            name = _clean(value)
            if name is None:
                raise ValueError("name required")
            changes[field] = name
        else:
            changes[field] = _clean(value)

    repository = ApiRepository(session)
    api = repository.update(api_id, changes) if changes else repository.get(api_id)
    if api is None:
        raise ValueError(API_NOT_FOUND)
    return api


def delete_api(session: Session, api_id: str) -> None:
    """Soft delete the API; its pending notices stop being dispatched."""

    if not ApiRepository(session).soft_delete(api_id):
        raise ValueError(API_NOT_FOUND)


def create_version(
    session: Session,
    *,
    api_id: str,
    version: str,
    status: str = "active",
    sunset_date: date | None = None,
) -> ApiVersion:
    get_api(session, api_id)

    label = version.strip()
    if not label:
        raise ValueError("version required")
    normalized_status = _normalize_version_status(status or "active")

    repository = ApiVersionRepository(session)
    if repository.get_by_label(api_id, label) is not None:
        raise ValueError(VERSION_ALREADY_EXISTS)

    return repository.create(
        ApiVersion(
            id=None,
            api_id=api_id,
            version=label,
            status=normalized_status,
            sunset_date=sunset_date,
        )
    )


def list_versions(session: Session, api_id: str) -> Sequence[ApiVersion]:
    get_api(session, api_id)
    return ApiVersionRepository(session).list_for_api(api_id)


def update_version(
    session: Session,
    version_id: str,
    *,
    status: str,
    sunset_date: date | None = None,
) -> ApiVersion:
    """Move a version through its lifecycle; ``sunset_date`` is replaced, not merged."""

    normalized_status = _normalize_version_status(status)
    version = ApiVersionRepository(session).update_status(
        version_id, normalized_status, sunset_date
    )
    if version is None:
        raise ValueError(VERSION_NOT_FOUND)
    return version


def delete_version(session: Session, version_id: str) -> None:
    if not ApiVersionRepository(session).soft_delete(version_id):
        raise ValueError(VERSION_NOT_FOUND)


__all__ = [
    "create_api",
    "create_version",
    "delete_api",
    "delete_version",
    "get_api",
    "list_apis",
    "list_versions",
    "update_api",
    "update_version",
]
