"""Persistence layer for API versions."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from uuid import uuid4

from sqlalchemy.orm import Session

from apinotice.domain.entities import ApiVersion
from apinotice.infrastructure.models import ApiVersionModel
from apinotice.utils import ensure_naive_utc, ensure_utc, now_naive_utc


class ApiVersionRepository:
    """Provide create, read, update and soft-delete operations for API versions."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, version_id: str, *, include_deleted: bool = False) -> ApiVersion | None:
        query = self.session.query(ApiVersionModel).filter(
            ApiVersionModel.id == version_id
        )
        if not include_deleted:
            query = query.filter(ApiVersionModel.deleted_at.is_(None))
        model = query.first()
        return self._to_entity(model) if model else None

    def get_by_label(self, api_id: str, version: str) -> ApiVersion | None:
        model = (
            self.session.query(ApiVersionModel)
            .filter(ApiVersionModel.api_id == api_id)
            .filter(ApiVersionModel.version == version)
            .first()
        )
        return self._to_entity(model) if model else None

    def list_for_api(self, api_id: str) -> Sequence[ApiVersion]:
        query = (
            self.session.query(ApiVersionModel)
            .filter(ApiVersionModel.api_id == api_id)
            .filter(ApiVersionModel.deleted_at.is_(None))
            .order_by(ApiVersionModel.created_at.desc(), ApiVersionModel.id.desc())
        )
        return [self._to_entity(model) for model in query.all()]

    def create(self, version: ApiVersion) -> ApiVersion:
        model = ApiVersionModel(
            id=version.id or str(uuid4()),
            api_id=version.api_id,
            version=version.version,
            status=version.status,
            sunset_date=version.sunset_date,
            created_at=ensure_naive_utc(version.created_at) or now_naive_utc(),
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update_status(
        self, version_id: str, status: str, sunset_date: date | None
    ) -> ApiVersion | None:
        model = (
            self.session.query(ApiVersionModel)
            .filter(
                ApiVersionModel.id == version_id, ApiVersionModel.deleted_at.is_(None)
            )
            .first()
        )
        if model is None:
            return None
        model.status = status
        model.sunset_date = sunset_date
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def soft_delete(self, version_id: str) -> bool:
        updated = (
            self.session.query(ApiVersionModel)
            .filter(
                ApiVersionModel.id == version_id, ApiVersionModel.deleted_at.is_(None)
            )
            .update(
                {ApiVersionModel.deleted_at: now_naive_utc()}, synchronize_session=False
            )
        )
        self.session.commit()
        return bool(updated)

    @staticmethod
    def _to_entity(model: ApiVersionModel) -> ApiVersion:
        return ApiVersion(
            id=model.id,
            api_id=model.api_id,
            version=model.version,
            status=model.status,
            sunset_date=model.sunset_date,
            created_at=ensure_utc(model.created_at),
            deleted_at=ensure_utc(model.deleted_at),
        )


__all__ = ["ApiVersionRepository"]
