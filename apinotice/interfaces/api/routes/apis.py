"""Routes for registering APIs and their versions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from apinotice.application.use_cases.apis import (
    create_api as create_api_uc,
    create_version as create_version_uc,
    delete_api as delete_api_uc,
    delete_version as delete_version_uc,
    get_api as get_api_uc,
    list_apis as list_apis_uc,
    list_versions as list_versions_uc,
    update_api as update_api_uc,
    update_version as update_version_uc,
)
from apinotice.application.use_cases.errors import NOT_FOUND_MESSAGES, VERSION_ALREADY_EXISTS
from apinotice.domain.entities import Api, ApiVersion
from apinotice.infrastructure.database import get_db
from apinotice.interfaces.api.schemas import (
    ApiCreate,
    ApiRead,
    ApiUpdate,
    VersionCreate,
    VersionRead,
    VersionUpdate,
)

router = APIRouter(tags=["apis"])


def _error_status(exc: ValueError) -> int:
    if str(exc) in NOT_FOUND_MESSAGES:
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_400_BAD_REQUEST


def _api_to_read_model(api: Api) -> ApiRead:
    return ApiRead.model_validate(api)


def _version_to_read_model(version: ApiVersion) -> VersionRead:
    return VersionRead.model_validate(version)


@router.post("/apis", response_model=ApiRead, status_code=status.HTTP_201_CREATED)
def create_api(payload: ApiCreate, db: Session = Depends(get_db)) -> ApiRead:
    try:
        api = create_api_uc(db, **payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=_error_status(exc), detail=str(exc)) from exc
    return _api_to_read_model(api)


@router.get("/apis", response_model=list[ApiRead])
def list_apis(
    org_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
) -> list[ApiRead]:
    return [_api_to_read_model(api) for api in list_apis_uc(db, org_id)]


@router.get("/apis/{api_id}", response_model=ApiRead)
def read_api(api_id: str, db: Session = Depends(get_db)) -> ApiRead:
    try:
        api = get_api_uc(db, api_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _api_to_read_model(api)


@router.put("/apis/{api_id}", response_model=ApiRead)
def update_api(api_id: str, payload: ApiUpdate, db: Session = Depends(get_db)) -> ApiRead:
    """Update the provided fields only; a blank value clears an optional field."""

    try:
        api = update_api_uc(db, api_id, **payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=_error_status(exc), detail=str(exc)) from exc
    return _api_to_read_model(api)


@router.delete("/apis/{api_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_api(api_id: str, db: Session = Depends(get_db)) -> Response:
    """Soft delete an API; its pending notices are no longer dispatched."""

    try:
        delete_api_uc(db, api_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/apis/{api_id}/versions",
    response_model=VersionRead,
    status_code=status.HTTP_201_CREATED,
)
def create_version(
    api_id: str,
    payload: VersionCreate,
    db: Session = Depends(get_db),
) -> VersionRead:
    try:
        version = create_version_uc(db, api_id=api_id, **payload.model_dump())
    except ValueError as exc:
        detail = str(exc)
        status_code = _error_status(exc)
        if detail == VERSION_ALREADY_EXISTS:
            status_code = status.HTTP_409_CONFLICT
        raise HTTPException(status_code=status_code, detail=detail) from exc
    return _version_to_read_model(version)


@router.get("/apis/{api_id}/versions", response_model=list[VersionRead])
def list_versions(api_id: str, db: Session = Depends(get_db)) -> list[VersionRead]:
    try:
        versions = list_versions_uc(db, api_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return [_version_to_read_model(version) for version in versions]


@router.put("/versions/{version_id}", response_model=VersionRead)
def update_version(
    version_id: str,
    payload: VersionUpdate,
    db: Session = Depends(get_db),
) -> VersionRead:
    try:
        version = update_version_uc(db, version_id, **payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=_error_status(exc), detail=str(exc)) from exc
    return _version_to_read_model(version)


@router.delete("/versions/{version_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_version(version_id: str, db: Session = Depends(get_db)) -> Response:
    try:
        delete_version_uc(db, version_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
